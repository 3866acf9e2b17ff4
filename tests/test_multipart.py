# -*- coding: utf-8 -*-

## Amazon S3 manager - testsuite
## License: GPL Version 2
## Copyright: TGRMN Software and contributors

import hashlib
import io
import threading
import unittest

import mock

from S3Engine.Chunker import Chunker
from S3Engine.Exceptions import S3Error, S3UploadError, ParameterError
from S3Engine.MultiPart import MultiPartUpload


def md5_hex(data):
    return hashlib.md5(data).hexdigest()


class TrickleStream(object):
    '''Returns at most 3 bytes per read, like a pipe would'''
    def __init__(self, data):
        self.stream = io.BytesIO(data)

    def read(self, size=-1):
        return self.stream.read(min(size, 3))


class FailingStream(object):
    def __init__(self, good_reads):
        self.good_reads = good_reads

    def read(self, size=-1):
        if self.good_reads <= 0:
            raise IOError('device not ready')
        self.good_reads -= 1
        return b'x' * size


class StalledStream(object):
    '''First read returns data, later reads block like an idle pipe'''
    def __init__(self, data):
        self.data = data
        self.released = threading.Event()

    def read(self, size=-1):
        if self.data:
            data, self.data = self.data, b''
            return data
        self.released.wait()
        return b''


class ChunkerTest(unittest.TestCase):
    def chunks(self, stream, chunk_size):
        chunker = Chunker(stream, chunk_size).start()
        try:
            return list(chunker)
        finally:
            chunker.stop()

    def test_chunks(self):
        self.assertEqual(self.chunks(io.BytesIO(b'0123456789'), 4), [b'0123', b'4567', b'89'])

    def test_exact_multiple(self):
        self.assertEqual(self.chunks(io.BytesIO(b'01234567'), 4), [b'0123', b'4567'])

    def test_empty_stream(self):
        self.assertEqual(self.chunks(io.BytesIO(b''), 4), [b''])

    def test_short_reads(self):
        self.assertEqual(self.chunks(TrickleStream(b'0123456789'), 4), [b'0123', b'4567', b'89'])

    def test_read_error(self):
        chunker = Chunker(FailingStream(1), 4).start()
        received = []
        with self.assertRaises(IOError):
            for chunk in chunker:
                received.append(chunk)
        chunker.stop()
        self.assertEqual(received, [b'xxxx'])

    def test_stop(self):
        chunker = Chunker(io.BytesIO(b'x' * 1000), 1).start()
        for chunk in chunker:
            break
        chunker.stop()
        self.assertFalse(chunker.thread.is_alive())


class MultiPartUploadTest(unittest.TestCase):
    def setUp(self):
        self.s3 = mock.Mock()
        self.s3.find_upload_id.return_value = None
        self.s3.initiate_multipart_upload.return_value = 'UP1'
        self.s3.upload_part.side_effect = lambda bucket, object, upload_id, seq, chunk, content_md5: md5_hex(chunk)
        self.s3.complete_multipart_upload.return_value = {'etag': 'final', 'version_id': None}

    def test_new_upload(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', {'x-amz-meta-foo': 'bar'}, part_size=4)
        self.assertEqual(upload.initiate_multipart_upload(), 'UP1')
        self.assertEqual(upload.state, MultiPartUpload.INITIATED)
        self.s3.initiate_multipart_upload.assert_called_once_with('mybucket', 'key', {'x-amz-meta-foo': 'bar'})

        upload.upload_all_parts(io.BytesIO(b'0123456789'))
        self.assertEqual([call[0][3] for call in self.s3.upload_part.call_args_list], [1, 2, 3])
        self.assertEqual(upload.complete_multipart_upload(), {'etag': 'final', 'version_id': None})
        self.assertEqual(upload.state, MultiPartUpload.COMPLETED)
        self.s3.complete_multipart_upload.assert_called_once_with(
            'mybucket', 'key', 'UP1',
            [{'part_number': 1, 'etag': md5_hex(b'0123')},
             {'part_number': 2, 'etag': md5_hex(b'4567')},
             {'part_number': 3, 'etag': md5_hex(b'89')}])

    def test_resume_skips_matching_parts(self):
        '''Parts already uploaded with the same content are not sent again'''
        self.s3.find_upload_id.return_value = 'OLD'
        self.s3.list_parts.return_value = [
            {'part_number': 1, 'etag': md5_hex(b'0123'), 'size': 4, 'last_modified': None},
            {'part_number': 2, 'etag': md5_hex(b'XXXX'), 'size': 4, 'last_modified': None},
        ]
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        self.assertEqual(upload.initiate_multipart_upload(), 'OLD')
        self.assertEqual(upload.state, MultiPartUpload.DISCOVERED)
        self.assertFalse(self.s3.initiate_multipart_upload.called)
        self.assertEqual(set(upload.old_parts), set([1, 2]))

        with self.assertLogs(level='WARNING') as logs:
            upload.upload_all_parts(io.BytesIO(b'0123456789'))
        self.assertIn('part 2', ''.join(logs.output))
        self.assertEqual([call[0][3] for call in self.s3.upload_part.call_args_list], [2, 3])
        self.assertEqual(self.s3.upload_part.call_args_list[0][0][4], b'4567')
        self.assertEqual(upload.parts[1], md5_hex(b'0123'))

        upload.complete_multipart_upload()
        etags = self.s3.complete_multipart_upload.call_args[0][3]
        self.assertEqual([part['part_number'] for part in etags], [1, 2, 3])

    def test_no_resume(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload(resume=False)
        self.assertFalse(self.s3.find_upload_id.called)

    def test_empty_stream_is_one_part(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        upload.upload_all_parts(io.BytesIO(b''))
        self.assertEqual(upload.parts, {1: md5_hex(b'')})

    def test_part_failure(self):
        self.s3.upload_part.side_effect = S3Error(500, 'InternalError', 'We encountered an internal error.')
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        with self.assertLogs(level='ERROR') as logs:
            self.assertRaises(S3Error, upload.upload_all_parts, io.BytesIO(b'0123456789'))
        self.assertIn('abortmp s3://mybucket/key UP1', ''.join(logs.output))
        self.assertEqual(upload.state, MultiPartUpload.PARTS_IN_FLIGHT)
        self.assertFalse(self.s3.complete_multipart_upload.called)

    def test_part_failure_with_stalled_stream(self):
        self.s3.upload_part.side_effect = S3Error(500, 'InternalError', 'We encountered an internal error.')
        stream = StalledStream(b'0123')
        self.addCleanup(stream.released.set)
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        outcome = []

        def run():
            try:
                upload.upload_all_parts(stream)
            except S3Error as e:
                outcome.append(e)

        with mock.patch.object(Chunker, 'stop_timeout', 0.1):
            with self.assertLogs(level='ERROR'):
                worker = threading.Thread(target=run)
                worker.daemon = True
                worker.start()
                worker.join(5)
        self.assertFalse(worker.is_alive())
        self.assertEqual(len(outcome), 1)
        self.assertEqual(outcome[0].status, 500)

    def test_stream_failure(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        with self.assertLogs(level='ERROR'):
            self.assertRaises(IOError, upload.upload_all_parts, FailingStream(2))
        self.assertEqual(sorted(upload.parts), [1, 2])

    def test_not_initiated(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        self.assertRaises(ParameterError, upload.upload_all_parts, io.BytesIO(b'data'))
        self.assertRaises(S3UploadError, upload.complete_multipart_upload)

    def test_no_part_size(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key')
        upload.initiate_multipart_upload()
        self.assertRaises(ParameterError, upload.upload_all_parts, io.BytesIO(b'data'))

    def test_complete_before_parts(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        self.assertRaises(S3UploadError, upload.complete_multipart_upload)

    def test_abort(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        upload.abort_upload()
        self.s3.abort_multipart_upload.assert_called_once_with('mybucket', 'key', 'UP1')
        self.assertEqual(upload.state, MultiPartUpload.ABORTED)
        self.assertRaises(S3UploadError, upload.abort_upload)
        self.assertRaises(S3UploadError, upload.upload_all_parts, io.BytesIO(b'data'))

    def test_abort_not_started(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key')
        upload.abort_upload()
        self.assertFalse(self.s3.abort_multipart_upload.called)

    def test_no_abort_once_completed(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key', part_size=4)
        upload.initiate_multipart_upload()
        upload.upload_all_parts(io.BytesIO(b'data'))
        upload.complete_multipart_upload()
        self.assertRaises(S3UploadError, upload.abort_upload)
        self.assertRaises(S3UploadError, upload.set_state, MultiPartUpload.PARTS_IN_FLIGHT)

    def test_copy_all_parts(self):
        self.s3.copy_part.return_value = 'copied'
        upload = MultiPartUpload(self.s3, 'mybucket', 'key')
        upload.initiate_multipart_upload(resume=False)
        upload.copy_all_parts('srcbucket', 'src', 10)
        self.s3.copy_part.assert_called_once_with('mybucket', 'key', 'UP1', 1, 'srcbucket', 'src', 0, 9)
        self.assertEqual(upload.parts, {1: 'copied'})

    def test_copy_empty(self):
        upload = MultiPartUpload(self.s3, 'mybucket', 'key')
        upload.initiate_multipart_upload(resume=False)
        self.assertRaises(ParameterError, upload.copy_all_parts, 'srcbucket', 'src', 0)

# vim:et:ts=4:sts=4:ai
