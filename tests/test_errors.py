# -*- coding: utf-8 -*-

## Amazon S3 manager - testsuite
## License: GPL Version 2
## Copyright: TGRMN Software and contributors

import unittest

from S3Engine.BaseUtils import getTreeFromXml
from S3Engine.ExitCodes import *
from S3Engine.Exceptions import S3Error, XmlParseError, parse_response_error

from tests.helpers import FakeResponse, error_xml


class ParseResponseErrorTest(unittest.TestCase):
    def test_error_document(self):
        response = FakeResponse(404, error_xml('NoSuchKey', 'The resource you requested does not exist',
                                               Resource='/mybucket/myfoto.jpg', RequestId='4442587FB7D0A2F9',
                                               HostId='host-from-body', BucketName='mybucket'),
                                headers={'x-amz-request-id': 'REQ-HEADER', 'x-amz-bucket-region': 'eu-west-1'})
        err = parse_response_error(response)
        self.assertIsInstance(err, S3Error)
        self.assertEqual(err.status, 404)
        self.assertEqual(err.code, 'NoSuchKey')
        self.assertEqual(err.message, 'The resource you requested does not exist')
        self.assertEqual(err.resource, '/mybucket/myfoto.jpg')
        self.assertEqual(err.request_id, 'REQ-HEADER')
        self.assertEqual(err.host_id, 'host-from-body')
        self.assertEqual(err.bucket_region, 'eu-west-1')
        self.assertEqual(err.info['bucketname'], 'mybucket')
        self.assertEqual(str(err), '404 (NoSuchKey): The resource you requested does not exist')

    def test_region_hint(self):
        response = FakeResponse(400, error_xml('AuthorizationHeaderMalformed', 'malformed',
                                               Region='ap-northeast-1'))
        err = parse_response_error(response)
        self.assertEqual(err.region, 'ap-northeast-1')

    def test_empty_body_uses_status(self):
        for status, code in ((301, 'MovedPermanently'), (307, 'TemporaryRedirect'),
                             (403, 'AccessDenied'), (404, 'NotFound'),
                             (405, 'MethodNotAllowed'), (501, 'MethodNotAllowed'),
                             (500, 'UnknownError')):
            err = parse_response_error(FakeResponse(status))
            self.assertEqual(err.code, code)
            self.assertEqual(err.status, status)

    def test_document_without_error_node(self):
        err = parse_response_error(FakeResponse(403, b'<Unexpected><Foo>bar</Foo></Unexpected>'))
        self.assertEqual(err.code, 'AccessDenied')

    def test_malformed_document(self):
        self.assertRaises(XmlParseError, parse_response_error, FakeResponse(500, b'<Error><Code>'))

    def test_parse_error_xml(self):
        self.assertIsNone(S3Error.parse_error_xml(getTreeFromXml(b'<Foo/>')))
        nested = getTreeFromXml(b'<Result><Error><Code>SlowDown</Code></Error></Result>')
        self.assertEqual(S3Error.parse_error_xml(nested), {'code': 'SlowDown'})


class ErrorCodeTest(unittest.TestCase):
    def test_exit_codes(self):
        expected = {301: EX_SERVERMOVED, 400: EX_SERVERERROR, 403: EX_ACCESSDENIED,
                    404: EX_NOTFOUND, 409: EX_CONFLICT, 412: EX_PRECONDITION,
                    503: EX_SERVICE, 500: EX_SOFTWARE}
        for status, exit_code in expected.items():
            self.assertEqual(S3Error(status).get_error_code(), exit_code)

# vim:et:ts=4:sts=4:ai
