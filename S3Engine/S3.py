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

import io
import mimetypes
import os
import platform
import re

from logging import debug, info, warning
from stat import ST_SIZE, ST_MODE, S_ISREG
from threading import Lock
from xml.sax import saxutils

import dateutil.parser

from . import PkgInfo
from .BaseUtils import (getTreeFromXml, getTextFromXml, encode_to_s3,
                        decode_from_s3, uri_resource_escape, s3_quote,
                        sanitize_etag, utcnow, makeDateLong)
from .Utils import (check_bucket_name, check_object_name, is_amazon_endpoint,
                    is_virtual_host_style, prepend_amz_meta,
                    calculate_even_splits, formatSize, MAX_OBJECT_SIZE,
                    SIZE_1MB)
from .Config import Config
from .ConnMan import ConnMan
from .Credentials import Credentials
from .Crypto import (sign_request_v4, format_param_str, sha256_hex,
                     generate_content_md5, is_sha256_hex, UNSIGNED_PAYLOAD)
from .Exceptions import *
from .MultiPart import MultiPartUpload
from .RegionCache import RegionCache, DEFAULT_REGION
from .RegionEndpoints import region_endpoint, normalize_region

try:
    import magic
    magic_ = magic.Magic(mime=True)
    def mime_magic_file(file):
        return magic_.from_file(file)

except (ImportError, OSError) as e:
    error_str = str(e)
    if 'magic' in error_str:
        magic_message = "Module python-magic is not available."
    else:
        magic_message = "Module python-magic can't be used (%s)." % error_str
    magic_message += " Guessing MIME types based on file extensions."
    magic_warned = False
    def mime_magic_file(file):
        global magic_warned
        if (not magic_warned):
            warning(magic_message)
            magic_warned = True
        return mimetypes.guess_type(file)[0]

def mime_magic(file):
    result = mime_magic_file(file)
    if result is not None:
        if ';' in result:
            mimetype, charset = result.split(';', 1)
            result = (mimetype.strip(), charset.strip()[len('charset='):])
        else:
            result = (result, None)
    if result is None:
        result = (None, None)
    return result


RE_SIGNATURE = re.compile(r'Signature=([0-9a-f]+)')
S3_XMLNS = "http://s3.amazonaws.com/doc/2006-03-01/"

__all__ = []


def redact_headers(headers):
    """Copy of 'headers' safe to be logged"""
    retval = {}
    for key, value in headers.items():
        if key == 'authorization' and isinstance(value, str):
            value = RE_SIGNATURE.sub('Signature=**REDACTED**', value)
        retval[key] = value
    return retval
__all__.append("redact_headers")


def bracket_host(host):
    if ':' in host and not host.startswith('['):
        # IPv6 literal
        host = '[%s]' % host
    return host


def join_host_port(host, port):
    return '%s:%d' % (bracket_host(host), port)


def get_content_length(stream):
    """
    Number of bytes left to read in 'stream' when it can be known without
    reading it, None otherwise.
    """
    position = 0
    try:
        position = stream.tell()
    except (AttributeError, OSError, ValueError):
        pass
    if hasattr(stream, 'getbuffer'):
        return len(stream.getbuffer()) - position
    try:
        st = os.fstat(stream.fileno())
    except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
        name = getattr(stream, 'name', None)
        if not isinstance(name, str):
            return None
        try:
            st = os.stat(name)
        except OSError:
            return None
    if not S_ISREG(st[ST_MODE]):
        return None
    return st[ST_SIZE] - position
__all__.append("get_content_length")


class S3(object):
    DEFAULT_PART_SIZE = 64 * SIZE_1MB
    PART_SIZE_STEP = 16 * SIZE_1MB
    MAX_UPLOADS = 1000

    def __init__(self, config=None, credential_provider=None, region_cache=None,
                 transport=None):
        self.config = config or Config()
        host = self.config.host_base.lower()
        port = self.config.port
        # host_base may carry the port, as in 'localhost:9000'
        if not port and host.startswith('[') and ']:' in host:
            host, port_str = host.rsplit(':', 1)
            port = int(port_str)
        elif not port and not host.endswith(']') and host.count(':') == 1:
            host, port_str = host.split(':')
            port = int(port_str)
        self.host = host.strip('[]')
        self.use_https = self.config.use_https
        self.protocol = self.use_https and 'https' or 'http'
        self.port = port or (self.use_https and 443 or 80)
        self.path_style = self.config.path_style
        self.region = self.config.bucket_location or None
        self.accelerate_endpoint = self.config.accelerate_endpoint or None
        self.part_size_override = self.config.get_part_size()

        self.credential_provider = credential_provider
        self.credentials = Credentials(self.config.access_key,
                                       self.config.secret_key,
                                       self.config.access_token)
        self._credentials_lock = Lock()
        self.anonymous = credential_provider is None \
            and self.credentials.is_anonymous()
        # SHA256 is only signed for authenticated http requests. Over https
        # the payload is sent as UNSIGNED-PAYLOAD.
        self.enable_sha256 = not self.anonymous and not self.use_https

        self.region_cache = region_cache if region_cache is not None else RegionCache()
        self.transport = transport or ConnMan(self.config)

        self.user_agent = "%s/%s (%s; %s) python/%s" % (
            PkgInfo.package, PkgInfo.version, platform.system().lower(),
            platform.machine(), platform.python_version())
        if self.config.user_agent_suffix:
            self.user_agent += " " + self.config.user_agent_suffix

    def set_s3_transfer_accelerate(self, endpoint):
        self.accelerate_endpoint = endpoint or None

    def get_accelerate_endpoint(self, bucket, object):
        if self.accelerate_endpoint and bucket and object:
            # http://docs.aws.amazon.com/AmazonS3/latest/dev/transfer-acceleration.html
            if '.' in bucket:
                raise ParameterError("Transfer Acceleration is not supported "
                                     "for non compliant bucket: %s" % bucket)
            return self.accelerate_endpoint
        return None

    ## Request building and execution

    def get_request_options(self, options, region):
        """
        Finalize 'options' (method, bucket, object, query, headers and the
        optional 'path_style' override) into what the transport sends:
        method, protocol, host, port, path and the lower-cased headers.
        """
        bucket = options.get('bucket')
        object = options.get('object')

        virtual_host_style = False
        if bucket:
            virtual_host_style = is_virtual_host_style(self.host, self.use_https,
                                                       bucket, self.path_style)
        path = '/'
        host = self.host
        if object:
            object = uri_resource_escape(object)

        # For Amazon S3 endpoint, get endpoint based on region.
        if is_amazon_endpoint(host):
            host = self.get_accelerate_endpoint(bucket, object) \
                or region_endpoint(region)

        if virtual_host_style and not options.get('path_style'):
            if bucket:
                host = "%s.%s" % (bucket, host)
            if object:
                path = "/%s" % object
        else:
            if bucket:
                path = "/%s" % bucket
            if object:
                path = "/%s/%s" % (bucket, object)
        path += format_param_str(options.get('query'))

        headers = {'host': bracket_host(host)}
        if (self.protocol == 'http' and self.port != 80) or \
           (self.protocol == 'https' and self.port != 443):
            headers['host'] = join_host_port(host, self.port)
        headers['user-agent'] = self.user_agent
        for key, value in (options.get('headers') or {}).items():
            if value is None:
                continue
            headers[key.lower()] = str(value)

        return {
            'method': options['method'],
            'protocol': self.protocol,
            'host': host,
            'port': self.port,
            'path': path,
            'headers': headers,
        }

    def refresh_credentials(self):
        """
        Credentials to sign the next request with, fetched from the
        credential provider when there is one.
        """
        if self.credential_provider is None:
            return self.credentials
        try:
            credentials = self.credential_provider.get_credentials()
        except S3CredentialsError:
            raise
        except Exception as e:
            raise S3CredentialsError("Unable to get credentials: %s" % e)
        if credentials is None or credentials.is_anonymous():
            raise S3CredentialsError("Unable to get credentials: "
                                     "the provider returned empty credentials")
        with self._credentials_lock:
            self.credentials = credentials
        return credentials

    def _check_request_args(self, expected_status, region):
        for status in expected_status:
            if not isinstance(status, int) or isinstance(status, bool):
                raise ParameterError("Expected status code should be an integer, not %r" % (status,))
        if not isinstance(region, str):
            raise ParameterError("Region should be a string, not %r" % (region,))

    def make_request(self, options, payload=b"", expected_status=(200,), region=""):
        """
        Send a request whose whole 'payload' is in memory.
        Returns the response, its body is left for the caller to read.
        """
        if not isinstance(payload, (str, bytes)):
            raise ParameterError("Payload should be a str or bytes, not %s" % type(payload).__name__)
        self._check_request_args(expected_status, region)
        payload = encode_to_s3(payload)

        headers = dict(options.get('headers') or {})
        if options['method'] in ('POST', 'PUT', 'DELETE'):
            headers['content-length'] = str(len(payload))
        options = dict(options, headers=headers)

        sha256sum = self.enable_sha256 and sha256_hex(payload) or ''
        return self.make_request_stream(options, payload, sha256sum,
                                        expected_status, region)

    def make_request_omit(self, options, payload=b"", expected_status=(200,), region=""):
        """Like make_request() for the callers that do not need the body"""
        response = self.make_request(options, payload, expected_status, region)
        response.drain()
        return response

    def make_request_stream(self, options, body, sha256sum, expected_status=(200,),
                            region=""):
        """
        Send a request, 'body' being bytes, str or a readable file object.

        'sha256sum' is the hex SHA256 of the body when requests are signed
        with the payload hash (authenticated http), and empty otherwise.
        """
        if not (isinstance(body, (bytes, str)) or hasattr(body, 'read')):
            raise ParameterError("Body should be bytes, str or a readable stream, not %s"
                                 % type(body).__name__)
        if not isinstance(sha256sum, str):
            raise ParameterError("sha256sum should be a string, not %r" % (sha256sum,))
        self._check_request_args(expected_status, region)
        # sha256sum will be empty for anonymous or https requests
        if not self.enable_sha256 and len(sha256sum) != 0:
            raise ParameterError("sha256sum expected to be empty for anonymous or https requests")
        # sha256sum should be valid for non-anonymous http requests.
        if self.enable_sha256 and not is_sha256_hex(sha256sum):
            raise ParameterError("Invalid sha256sum: %s" % sha256sum)

        credentials = self.refresh_credentials()

        bucket = options.get('bucket')
        if not region:
            if self.region:
                region = self.region
            elif bucket:
                region = self.get_bucket_region(bucket)
            else:
                region = DEFAULT_REGION

        request = self.get_request_options(options, region)
        if not self.anonymous:
            if not self.enable_sha256:
                sha256sum = UNSIGNED_PAYLOAD
            date = utcnow()
            headers = request['headers']
            headers['x-amz-date'] = makeDateLong(date)
            headers['x-amz-content-sha256'] = sha256sum
            if credentials.session_token:
                headers['x-amz-security-token'] = credentials.session_token
            headers['authorization'] = sign_request_v4(request, credentials.access_key,
                                                       credentials.secret_key,
                                                       region, date, sha256sum)

        debug("Processing request: %s %s%s (region %s)" % (request['method'], request['host'],
                                                         request['path'], region))
        debug("Request headers: %s" % redact_headers(request['headers']))
        try:
            response = self.transport.request(request, body)
        except S3RequestError:
            if bucket:
                self.region_cache.invalidate(bucket)
            raise

        if not response.status:
            raise S3ResponseError("BUG: response doesn't have a status code")
        debug("Response: %s %s" % (response.status, response.reason))
        if response.status not in expected_status:
            # For an incorrect region, S3 server always sends back 400.
            # The region is dropped for every error so that a different
            # status or error code for the same problem still heals.
            if bucket:
                self.region_cache.invalidate(bucket)
            err = parse_response_error(response)
            debug("Request failed: %s" % err)
            raise err
        return response

    ## Region resolution

    def get_bucket_region(self, bucket):
        check_bucket_name(bucket)

        # A region set in the configuration is used as is
        if self.region:
            return self.region

        cached = self.region_cache.get(bucket)
        if cached:
            return cached

        options = {'method': 'GET', 'bucket': bucket,
                   'query': {'location': None}, 'path_style': self.path_style}
        try:
            response = self.make_request(options, b"", [200], DEFAULT_REGION)
        except S3Error as e:
            # AWS response AuthorizationHeaderMalformed means we signed the
            # request for the wrong region. The error tells the right one.
            if e.code != 'AuthorizationHeaderMalformed':
                raise
            if not e.region:
                warning(u'Could not determine the location of bucket %s. '
                        u'Please consider setting bucket_location.' % bucket)
                raise
            info('Forwarding location request of %s to %s', bucket, e.region)
            response = self.make_request(options, b"", [200], e.region)
        return self._extract_region(bucket, response)

    def _extract_region(self, bucket, response):
        data = response.read()
        location = data and getTextFromXml(data, "LocationConstraint") or None
        region = normalize_region(location)
        self.region_cache.set(bucket, region)
        return region

    ## Incomplete uploads

    def list_incomplete_uploads_query(self, bucket, prefix, key_marker="",
                                      upload_id_marker="", delimiter=""):
        check_bucket_name(bucket)
        query = {'uploads': None, 'prefix': prefix,
                 'max-uploads': str(self.MAX_UPLOADS)}
        if delimiter:
            query['delimiter'] = delimiter
        if key_marker:
            query['key-marker'] = key_marker
        if upload_id_marker:
            query['upload-id-marker'] = upload_id_marker

        response = self.make_request({'method': 'GET', 'bucket': bucket, 'query': query})
        tree = getTreeFromXml(response.read())
        if tree.tag != "ListMultipartUploadsResult":
            raise S3ResponseError('Missing tag: "ListMultipartUploadsResult"')

        result = {
            'uploads': [],
            'prefixes': [],
            'is_truncated': (tree.findtext("IsTruncated") or "").lower() == "true",
            'next_key_marker': decode_from_s3(tree.findtext("NextKeyMarker") or ""),
            'next_upload_id_marker': decode_from_s3(tree.findtext("NextUploadIdMarker") or ""),
        }
        for node in tree.findall("CommonPrefixes"):
            result['prefixes'].append(decode_from_s3(node.findtext("Prefix") or ""))
        for node in tree.findall("Upload"):
            initiated = node.findtext("Initiated")
            result['uploads'].append({
                'key': decode_from_s3(node.findtext("Key") or ""),
                'upload_id': decode_from_s3(node.findtext("UploadId") or ""),
                'initiated': initiated and dateutil.parser.parse(initiated) or None,
                'storage_class': node.findtext("StorageClass"),
            })
        return result

    def list_incomplete_uploads(self, bucket, prefix="", delimiter=""):
        """Generator over every incomplete upload of 'bucket' under 'prefix'"""
        key_marker = upload_id_marker = ""
        while True:
            result = self.list_incomplete_uploads_query(bucket, prefix, key_marker,
                                                        upload_id_marker, delimiter)
            for upload in result['uploads']:
                yield upload
            if not result['is_truncated']:
                break
            if not (result['next_key_marker'] or result['next_upload_id_marker']):
                # Unexpectedly, the server lied, and so the previous
                # response was not truncated.
                break
            key_marker = result['next_key_marker']
            upload_id_marker = result['next_upload_id_marker']
            debug("Listing continues after '%s'" % key_marker)

    def find_upload_id(self, bucket, object):
        """
        Id of the most recently initiated upload of exactly 'object', or
        None. Uploads initiated at the same time keep the first listed.
        """
        check_bucket_name(bucket)
        check_object_name(object)
        latest = None
        for upload in self.list_incomplete_uploads(bucket, object):
            if upload['key'] != object:
                continue
            if latest is None or (upload['initiated'] is not None and
                                  (latest['initiated'] is None or
                                   upload['initiated'] > latest['initiated'])):
                latest = upload
        return latest and latest['upload_id'] or None

    def initiate_multipart_upload(self, bucket, object, headers=None):
        """
        Begin a multipart upload
        http://docs.amazonwebservices.com/AmazonS3/latest/API/index.html?mpUploadInitiate.html
        """
        check_bucket_name(bucket)
        check_object_name(object)
        response = self.make_request({'method': 'POST', 'bucket': bucket, 'object': object,
                                      'query': {'uploads': None}, 'headers': headers})
        data = response.read()
        upload_id = data and getTextFromXml(data, "UploadId") or None
        if not upload_id:
            raise S3ResponseError('Missing tag: "UploadId" in the response to the '
                                  'initiation of s3://%s/%s' % (bucket, object))
        debug("MultiPart: Initiated upload %s of s3://%s/%s" % (upload_id, bucket, object))
        return upload_id

    def abort_multipart_upload(self, bucket, object, upload_id):
        """
        Abort multipart upload
        http://docs.amazonwebservices.com/AmazonS3/latest/API/index.html?mpUploadAbort.html
        """
        if not upload_id:
            raise ParameterError("Upload id cannot be empty")
        debug("MultiPart: Aborting upload: %s" % upload_id)
        return self.make_request_omit({'method': 'DELETE', 'bucket': bucket, 'object': object,
                                       'query': {'uploadId': upload_id}}, b"", [204])

    def remove_incomplete_upload(self, bucket, object):
        """Abort every incomplete upload of 'object', returns their ids"""
        aborted = []
        while True:
            upload_id = self.find_upload_id(bucket, object)
            if not upload_id:
                break
            if upload_id in aborted:
                warning("Upload %s of s3://%s/%s is still listed after being aborted"
                        % (upload_id, bucket, object))
                break
            self.abort_multipart_upload(bucket, object, upload_id)
            aborted.append(upload_id)
        return aborted

    def list_parts_query(self, bucket, object, upload_id, marker=0):
        if not upload_id:
            raise ParameterError("Upload id cannot be empty")
        if not isinstance(marker, int):
            raise ParameterError("Part number marker should be an integer, not %r" % (marker,))
        query = {'uploadId': upload_id}
        if marker:
            query['part-number-marker'] = str(marker)
        response = self.make_request({'method': 'GET', 'bucket': bucket, 'object': object,
                                      'query': query})
        tree = getTreeFromXml(response.read())
        if tree.tag != "ListPartsResult":
            raise S3ResponseError('Missing tag: "ListPartsResult"')

        result = {
            'parts': [],
            'is_truncated': (tree.findtext("IsTruncated") or "").lower() == "true",
            'marker': int(tree.findtext("NextPartNumberMarker") or 0),
        }
        for node in tree.findall("Part"):
            last_modified = node.findtext("LastModified")
            result['parts'].append({
                'part_number': int(node.findtext("PartNumber")),
                'etag': sanitize_etag(node.findtext("ETag")),
                'size': int(node.findtext("Size") or 0),
                'last_modified': last_modified and dateutil.parser.parse(last_modified) or None,
            })
        return result

    def list_parts(self, bucket, object, upload_id):
        check_bucket_name(bucket)
        check_object_name(object)
        parts = []
        marker = 0
        while True:
            result = self.list_parts_query(bucket, object, upload_id, marker)
            parts.extend(result['parts'])
            if not result['is_truncated'] or result['marker'] <= marker:
                break
            marker = result['marker']
            debug("Listing continues after Part '%s'" % marker)
        return parts

    def upload_part(self, bucket, object, upload_id, part_number, data, content_md5=None):
        """
        Upload a file chunk
        http://docs.amazonwebservices.com/AmazonS3/latest/API/index.html?mpUploadUploadPart.html
        """
        headers = {'content-length': str(len(data)),
                   'content-md5': content_md5 or generate_content_md5(data)}
        query = {'partNumber': '%d' % part_number, 'uploadId': upload_id}
        response = self.make_request_omit({'method': 'PUT', 'bucket': bucket, 'object': object,
                                           'query': query, 'headers': headers}, data)
        return sanitize_etag(response.headers.get('etag', ''))

    def copy_part(self, bucket, object, upload_id, part_number, src_bucket, src_object,
                  first_byte, last_byte):
        """
        Copy a remote file chunk
        http://docs.amazonwebservices.com/AmazonS3/latest/API/mpUploadUploadPartCopy.html
        """
        headers = {
            'x-amz-copy-source': s3_quote("/%s/%s" % (src_bucket, src_object),
                                          quote_backslashes=False, unicode_output=True),
            # byte range, with end byte included. A 10 byte file has bytes=0-9
            'x-amz-copy-source-range': "bytes=%d-%d" % (first_byte, last_byte),
        }
        query = {'partNumber': '%d' % part_number, 'uploadId': upload_id}
        response = self.make_request({'method': 'PUT', 'bucket': bucket, 'object': object,
                                      'query': query, 'headers': headers})
        data = response.read()
        if not data:
            raise S3ResponseError("BUG: empty response to the copy of part %d of upload %s"
                                  % (part_number, upload_id))
        # An error may come back inside a 200 response
        tree = getTreeFromXml(data)
        error_info = S3Error.parse_error_xml(tree)
        if error_info is not None:
            raise S3Error(response.status, info=error_info, headers=response.headers)
        return sanitize_etag(getTextFromXml(data, "ETag") or '')

    def complete_multipart_upload(self, bucket, object, upload_id, etags):
        """
        Finish a multipart upload
        http://docs.amazonwebservices.com/AmazonS3/latest/API/index.html?mpUploadComplete.html

        'etags' is a list of {'part_number', 'etag'} dicts, sent in
        ascending part number order.
        """
        check_bucket_name(bucket)
        check_object_name(object)
        if not upload_id:
            raise ParameterError("Upload id cannot be empty")

        parts_xml = []
        part_xml = "<Part><PartNumber>%i</PartNumber><ETag>%s</ETag></Part>"
        for part in sorted(etags, key=lambda part: part['part_number']):
            parts_xml.append(part_xml % (part['part_number'], saxutils.escape(part['etag'])))
        body = '<CompleteMultipartUpload xmlns="%s">%s</CompleteMultipartUpload>' \
               % (S3_XMLNS, "".join(parts_xml))

        debug("MultiPart: Completing upload: %s" % upload_id)
        response = self.make_request({'method': 'POST', 'bucket': bucket, 'object': object,
                                      'query': {'uploadId': upload_id}}, body)
        data = response.read()
        if not data:
            raise S3ResponseError("BUG: empty response to the completion of upload %s" % upload_id)

        tree = getTreeFromXml(data)
        if tree.tag == "CompleteMultipartUploadResult" or tree.findtext("Location"):
            return {
                'location': decode_from_s3(tree.findtext("Location") or ""),
                'bucket': decode_from_s3(tree.findtext("Bucket") or ""),
                'key': decode_from_s3(tree.findtext("Key") or ""),
                'etag': sanitize_etag(tree.findtext("ETag")),
                'version_id': response.headers.get('x-amz-version-id'),
            }

        # Complete Multipart can return an error document with a 200 status
        error_info = S3Error.parse_error_xml(tree)
        if error_info is None and tree.findtext("Code"):
            error_info = dict((decode_from_s3(child.tag).lower(), decode_from_s3(child.text))
                              for child in tree if child.text)
        if error_info and error_info.get('code'):
            raise S3Error(response.status, info=error_info, headers=response.headers)
        raise S3ResponseError("BUG: failed to parse the completion response of upload %s" % upload_id)

    ## Object upload

    def calculate_part_size(self, size):
        if not isinstance(size, int) or isinstance(size, bool):
            raise ParameterError("Size should be an integer, not %r" % (size,))
        if size > MAX_OBJECT_SIZE:
            raise ParameterError("Size should not be more than %d bytes, got %d" % (MAX_OBJECT_SIZE, size))
        if self.part_size_override:
            return self.part_size_override
        part_size = self.DEFAULT_PART_SIZE
        # Try part sizes as 64MB, 80MB, 96MB etc.
        while part_size * self.config.multipart_max_chunks <= size:
            part_size += self.PART_SIZE_STEP
        return part_size

    def put_object(self, bucket, object, source, size=None, metadata=None):
        """
        Upload 'source' (bytes, str or a readable binary file object) to
        s3://bucket/object, in a single request or as a multipart upload
        depending on its size. Returns a dict with at least 'etag' and
        'version_id'.
        """
        check_bucket_name(bucket)
        check_object_name(object)
        headers = prepend_amz_meta(metadata)

        inline = isinstance(source, (str, bytes))
        if inline:
            source = encode_to_s3(source)
            size = len(source)
        elif not hasattr(source, 'read'):
            raise ParameterError("Source should be bytes, str or a readable stream, not %s"
                                 % type(source).__name__)

        if size is not None:
            if not isinstance(size, int) or isinstance(size, bool):
                raise ParameterError("Size should be an integer, not %r" % (size,))
            if size < 0:
                raise ParameterError("Size cannot be negative, given size: %d" % size)
        else:
            size = get_content_length(source)
            if size is None:
                debug("Size of the source of s3://%s/%s is unknown" % (bucket, object))
                size = MAX_OBJECT_SIZE

        part_size = self.calculate_part_size(size)
        if inline or size <= part_size:
            if inline:
                data = source
            else:
                data = encode_to_s3(source.read())
            return self.upload_buffer(bucket, object, headers, data)
        return self.upload_stream(bucket, object, headers, source, part_size)

    def upload_buffer(self, bucket, object, headers, data):
        headers = dict(headers or {})
        headers['content-length'] = str(len(data))
        if not self.enable_sha256:
            headers['content-md5'] = generate_content_md5(data)
        sha256sum = self.enable_sha256 and sha256_hex(data) or ''
        debug("Uploading s3://%s/%s in a single request (%d%sB)"
              % ((bucket, object) + formatSize(len(data), human_readable=True)))
        response = self.make_request_stream({'method': 'PUT', 'bucket': bucket, 'object': object,
                                             'headers': headers}, data, sha256sum, [200], "")
        response.drain()
        return {
            'etag': sanitize_etag(response.headers.get('etag', '')),
            'version_id': response.headers.get('x-amz-version-id'),
        }

    def upload_stream(self, bucket, object, headers, stream, part_size):
        upload = MultiPartUpload(self, bucket, object, headers, part_size)
        upload.initiate_multipart_upload()
        upload.upload_all_parts(stream)
        return upload.complete_multipart_upload()

    def _guess_content_type(self, filename):
        content_type = self.config.default_mime_type
        if self.config.guess_mime_type:
            if self.config.use_mime_magic:
                (content_type, content_charset) = mime_magic(filename)
            else:
                (content_type, content_charset) = mimetypes.guess_type(filename)
        if not content_type:
            content_type = self.config.default_mime_type
        return content_type

    def content_type(self, filename):
        # explicit configuration always wins
        return self.config.mime_type or self._guess_content_type(filename)

    def fput_object(self, bucket, object, filename, metadata=None):
        """Upload the local file 'filename' to s3://bucket/object"""
        metadata = dict(metadata or {})
        try:
            st = os.stat(filename)
        except OSError as e:
            raise InvalidFileError(u"%s: %s" % (filename, e.strerror))
        if not S_ISREG(st[ST_MODE]):
            raise InvalidFileError(u"Not a regular file: %s" % filename)
        if not [key for key in metadata if key.lower() == 'content-type']:
            metadata['content-type'] = self.content_type(filename)
        with io.open(filename, 'rb') as stream:
            return self.put_object(bucket, object, stream, st[ST_SIZE], metadata)

    def copy_object_multipart(self, src_bucket, src_object, src_size, dst_bucket,
                              dst_object, headers=None):
        """
        Server side copy of s3://src_bucket/src_object, 'src_size' bytes
        long, through UploadPartCopy requests.
        """
        check_bucket_name(src_bucket)
        check_object_name(src_object)
        if calculate_even_splits(src_size) is None:
            raise ParameterError("Cannot copy the empty object s3://%s/%s in parts"
                                 % (src_bucket, src_object))
        upload = MultiPartUpload(self, dst_bucket, dst_object, headers)
        upload.initiate_multipart_upload(resume=False)
        upload.copy_all_parts(src_bucket, src_object, src_size)
        return upload.complete_multipart_upload()

# vim:et:ts=4:sts=4:ai
