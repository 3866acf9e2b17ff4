# -*- coding: utf-8 -*-

## --------------------------------------------------------------------
## Amazon S3 manager
##
## Authors   : Michal Ludvig <michal@logix.cz> (https://www.logix.cz/michal)
##             Florent Viard <florent@sodria.com> (https://www.sodria.com)
## Copyright : TGRMN Software, Sodria SAS and contributors
## License   : GPL Version 2
## Website   : https://s3tools.org
## --------------------------------------------------------------------

from logging import debug, info, warning, error

from . import PkgInfo
from .BaseUtils import md5
from .Chunker import Chunker
from .Crypto import generate_content_md5
from .Exceptions import ParameterError, S3UploadError
from .Utils import formatSize, calculate_even_splits


class MultiPartUpload(object):
    """
    One multipart upload session of s3://bucket/object, either fed from a
    stream (upload_all_parts) or copied from another object
    (copy_all_parts).

    NotStarted -> Discovered|Initiated -> PartsInFlight -> Completed,
    and Aborted from any state but Completed. Completed and Aborted are
    final.
    """
    NOT_STARTED = "NotStarted"
    DISCOVERED = "Discovered"
    INITIATED = "Initiated"
    PARTS_IN_FLIGHT = "PartsInFlight"
    COMPLETED = "Completed"
    ABORTED = "Aborted"

    transitions = {
        NOT_STARTED: (DISCOVERED, INITIATED, ABORTED),
        DISCOVERED: (PARTS_IN_FLIGHT, ABORTED),
        INITIATED: (PARTS_IN_FLIGHT, ABORTED),
        PARTS_IN_FLIGHT: (COMPLETED, ABORTED),
        COMPLETED: (),
        ABORTED: (),
    }

    def __init__(self, s3, bucket, object, headers_baseline=None, part_size=None):
        self.s3 = s3
        self.bucket = bucket
        self.object = object
        self.headers_baseline = headers_baseline or {}
        self.part_size = part_size
        self.upload_id = None
        self.state = self.NOT_STARTED
        # part number -> etag of the parts of this session
        self.parts = {}
        # part number -> {'etag', 'size'} uploaded by a previous attempt
        self.old_parts = {}

    def __repr__(self):
        return "<MultiPartUpload s3://%s/%s id=%s state=%s>" % (
            self.bucket, self.object, self.upload_id, self.state)

    def set_state(self, state):
        if state not in self.transitions[self.state]:
            raise S3UploadError("Multipart upload of s3://%s/%s can't go from %s to %s"
                                % (self.bucket, self.object, self.state, state))
        debug("MultiPart: %s -> %s" % (self.state, state))
        self.state = state

    def get_parts_information(self, upload_id):
        parts = dict()
        for part in self.s3.list_parts(self.bucket, self.object, upload_id):
            parts[part['part_number']] = {
                'etag': part['etag'],
                'size': part['size'],
            }
        return parts

    def initiate_multipart_upload(self, resume=True):
        """
        Reuse the latest incomplete upload of the object when 'resume' is
        set and there is one, start a new upload otherwise.
        """
        upload_id = resume and self.s3.find_upload_id(self.bucket, self.object) or None
        if upload_id:
            self.old_parts = self.get_parts_information(upload_id)
            self.upload_id = upload_id
            self.set_state(self.DISCOVERED)
            info("MultiPart: Resuming upload %s of s3://%s/%s (%d parts already uploaded)"
                 % (upload_id, self.bucket, self.object, len(self.old_parts)))
        else:
            self.upload_id = self.s3.initiate_multipart_upload(self.bucket, self.object,
                                                               self.headers_baseline)
            self.set_state(self.INITIATED)
        return self.upload_id

    def _log_failure(self, seq):
        error(u"Upload of 's3://%s/%s' part %d failed. Use\n  "
              "%s abortmp s3://%s/%s %s\nto abort the upload, or run the same "
              "upload again to resume it."
              % (self.bucket, self.object, seq, PkgInfo.package,
                 self.bucket, self.object, self.upload_id))

    def upload_all_parts(self, stream):
        """
        Upload 'stream' in parts of 'part_size' bytes. The stream is read on
        a separate thread while the previous part is sent. The first error
        of either side stops both and is raised, the session is left as is
        so that it can be resumed or aborted.
        """
        if not self.upload_id:
            raise ParameterError("Attempting to use a multipart upload that "
                                 "has not been initiated.")
        if not self.part_size:
            raise ParameterError("Part size of the multipart upload is not set")
        self.set_state(self.PARTS_IN_FLIGHT)

        debug("MultiPart: Uploading s3://%s/%s in parts of %d%sB"
              % ((self.bucket, self.object) + formatSize(self.part_size, human_readable=True)))
        chunker = Chunker(stream, self.part_size).start()
        seq = 1
        try:
            for chunk in chunker:
                self.upload_part(seq, chunk)
                seq += 1
        except Exception:
            self._log_failure(seq)
            raise
        finally:
            chunker.stop()
        debug("MultiPart: Upload finished: %d parts", seq - 1)

    def upload_part(self, seq, chunk):
        """
        Upload one chunk as part 'seq', unless the previous attempt already
        uploaded the very same content for it.
        """
        md5_hash = md5(chunk)
        checksum = md5_hash.hexdigest()
        remote_status = self.old_parts.get(seq)
        if remote_status is not None:
            if remote_status['etag'] == checksum:
                debug("MultiPart: md5sum match for s3://%s/%s part %d, skipping."
                      % (self.bucket, self.object, seq))
                self.parts[seq] = remote_status['etag']
                return None
            warning("MultiPart: checksum (%s vs %s) does not match for"
                    " s3://%s/%s part %d, reuploading."
                    % (remote_status['etag'], checksum, self.bucket, self.object, seq))

        debug("Uploading part %i of %r (%s bytes)" % (seq, self.upload_id, len(chunk)))
        etag = self.s3.upload_part(self.bucket, self.object, self.upload_id, seq, chunk,
                                   content_md5=generate_content_md5(chunk))
        self.parts[seq] = etag
        return etag

    def copy_all_parts(self, src_bucket, src_object, src_size, start=0):
        """
        Copy 'src_size' bytes of s3://src_bucket/src_object from offset
        'start' in evenly sized parts.
        """
        if not self.upload_id:
            raise ParameterError("Attempting to use a multipart upload that "
                                 "has not been initiated.")
        splits = calculate_even_splits(src_size, start)
        if splits is None:
            raise ParameterError("Cannot copy an empty range in parts")
        self.set_state(self.PARTS_IN_FLIGHT)

        debug("MultiPart: Copying s3://%s/%s in %d parts" % (src_bucket, src_object, len(splits)))
        for seq, (first_byte, last_byte) in enumerate(splits, 1):
            try:
                self.copy_part(seq, src_bucket, src_object, first_byte, last_byte)
            except Exception:
                self._log_failure(seq)
                raise

    def copy_part(self, seq, src_bucket, src_object, first_byte, last_byte):
        debug("Copying part %i of %r (bytes %d-%d)" % (seq, self.upload_id, first_byte, last_byte))
        etag = self.s3.copy_part(self.bucket, self.object, self.upload_id, seq,
                                 src_bucket, src_object, first_byte, last_byte)
        self.parts[seq] = etag
        return etag

    def complete_multipart_upload(self):
        if self.state != self.PARTS_IN_FLIGHT:
            raise S3UploadError("Multipart upload of s3://%s/%s can't be completed from %s"
                                % (self.bucket, self.object, self.state))
        etags = [{'part_number': seq, 'etag': self.parts[seq]}
                 for seq in sorted(self.parts)]
        result = self.s3.complete_multipart_upload(self.bucket, self.object,
                                                   self.upload_id, etags)
        self.set_state(self.COMPLETED)
        return result

    def abort_upload(self):
        if self.ABORTED not in self.transitions[self.state]:
            raise S3UploadError("Multipart upload of s3://%s/%s can't be aborted from %s"
                                % (self.bucket, self.object, self.state))
        if self.upload_id:
            self.s3.abort_multipart_upload(self.bucket, self.object, self.upload_id)
        self.set_state(self.ABORTED)

# vim:et:ts=4:sts=4:ai
