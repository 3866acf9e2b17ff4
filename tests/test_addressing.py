# -*- coding: utf-8 -*-

## Amazon S3 manager - testsuite
## License: GPL Version 2
## Copyright: TGRMN Software and contributors

import unittest

from S3Engine.Exceptions import ParameterError
from S3Engine.Utils import is_virtual_host_style
from S3Engine.RegionEndpoints import region_endpoint, normalize_region

from tests.helpers import make_s3


class VirtualHostStyleTest(unittest.TestCase):
    def test_dotted_bucket_over_https_is_path_style(self):
        self.assertFalse(is_virtual_host_style('s3.amazonaws.com', True, 'my.bucket', False))
        self.assertFalse(is_virtual_host_style('minio.local', True, 'my.bucket', False))

    def test_dotted_bucket_over_http(self):
        self.assertTrue(is_virtual_host_style('s3.amazonaws.com', False, 'my.bucket', True))

    def test_amazon_ignores_path_style_flag(self):
        self.assertTrue(is_virtual_host_style('s3.amazonaws.com', True, 'mybucket', True))

    def test_other_hosts_follow_the_flag(self):
        self.assertTrue(is_virtual_host_style('minio.local', True, 'mybucket', False))
        self.assertFalse(is_virtual_host_style('minio.local', True, 'mybucket', True))


class RegionEndpointTest(unittest.TestCase):
    def test_region_endpoint(self):
        self.assertEqual(region_endpoint('us-east-1'), 's3.amazonaws.com')
        self.assertEqual(region_endpoint(''), 's3.amazonaws.com')
        self.assertEqual(region_endpoint('eu-west-3'), 's3.eu-west-3.amazonaws.com')
        self.assertEqual(region_endpoint('cn-north-1'), 's3.cn-north-1.amazonaws.com.cn')

    def test_normalize_region(self):
        self.assertEqual(normalize_region(None), 'us-east-1')
        self.assertEqual(normalize_region(''), 'us-east-1')
        self.assertEqual(normalize_region('EU'), 'eu-west-1')
        self.assertEqual(normalize_region('US'), 'us-east-1')
        self.assertEqual(normalize_region('ap-south-1'), 'ap-south-1')


class RequestOptionsTest(unittest.TestCase):
    def test_dotted_bucket_over_tls(self):
        '''Dotted buckets over TLS go path style to the raw region endpoint'''
        s3 = make_s3()
        request = s3.get_request_options({'method': 'GET', 'bucket': 'my.bucket',
                                          'object': 'dir/a b.txt'}, 'us-east-1')
        self.assertEqual(request['host'], 's3.amazonaws.com')
        self.assertEqual(request['path'], '/my.bucket/dir/a%20b.txt')
        self.assertEqual(request['headers']['host'], 's3.amazonaws.com')
        self.assertEqual(request['protocol'], 'https')
        self.assertEqual(request['port'], 443)

    def test_virtual_host_on_region_endpoint(self):
        s3 = make_s3()
        request = s3.get_request_options({'method': 'PUT', 'bucket': 'mybucket',
                                          'object': 'key'}, 'eu-west-1')
        self.assertEqual(request['host'], 'mybucket.s3.eu-west-1.amazonaws.com')
        self.assertEqual(request['path'], '/key')

    def test_bucket_only(self):
        s3 = make_s3()
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'query': {'location': None}}, 'us-east-1')
        self.assertEqual(request['host'], 'mybucket.s3.amazonaws.com')
        self.assertEqual(request['path'], '/?location')

    def test_path_style_override(self):
        s3 = make_s3()
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'query': {'location': None},
                                          'path_style': True}, 'us-east-1')
        self.assertEqual(request['host'], 's3.amazonaws.com')
        self.assertEqual(request['path'], '/mybucket?location')

    def test_no_bucket(self):
        s3 = make_s3()
        request = s3.get_request_options({'method': 'GET'}, 'us-east-1')
        self.assertEqual(request['host'], 's3.amazonaws.com')
        self.assertEqual(request['path'], '/')

    def test_custom_endpoint_with_port(self):
        s3 = make_s3(host_base='http://localhost:9000', use_https=False, path_style=True)
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'object': 'key',
                                          'query': {'uploadId': 'a/b', 'partNumber': '3'}},
                                         'us-east-1')
        self.assertEqual(request['host'], 'localhost')
        self.assertEqual(request['port'], 9000)
        self.assertEqual(request['protocol'], 'http')
        self.assertEqual(request['headers']['host'], 'localhost:9000')
        self.assertEqual(request['path'], '/mybucket/key?partNumber=3&uploadId=a%2Fb')

    def test_custom_endpoint_defaults_to_path_style(self):
        s3 = make_s3(host_base='minio.local:9000', use_https=False)
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'object': 'key'}, 'us-east-1')
        self.assertEqual(request['host'], 'minio.local')
        self.assertEqual(request['headers']['host'], 'minio.local:9000')
        self.assertEqual(request['path'], '/mybucket/key')

    def test_ipv6_endpoint(self):
        s3 = make_s3(host_base='[::1]:9000', use_https=False)
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'object': 'key'}, 'us-east-1')
        self.assertEqual(request['host'], '::1')
        self.assertEqual(request['port'], 9000)
        self.assertEqual(request['headers']['host'], '[::1]:9000')
        self.assertEqual(request['path'], '/mybucket/key')

    def test_ipv6_endpoint_on_default_port(self):
        s3 = make_s3(host_base='::1', use_https=False)
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket'}, 'us-east-1')
        self.assertEqual(request['port'], 80)
        self.assertEqual(request['headers']['host'], '[::1]')

    def test_custom_endpoint_virtual_host(self):
        s3 = make_s3(host_base='minio.local', port=8443, path_style=False)
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket',
                                          'object': 'key'}, 'us-east-1')
        self.assertEqual(request['host'], 'mybucket.minio.local')
        self.assertEqual(request['headers']['host'], 'mybucket.minio.local:8443')

    def test_headers_are_lower_cased(self):
        s3 = make_s3()
        request = s3.get_request_options({'method': 'PUT', 'bucket': 'mybucket', 'object': 'key',
                                          'headers': {'Content-Type': 'text/plain',
                                                      'X-Amz-Meta-Empty': None}},
                                         'us-east-1')
        self.assertEqual(request['headers']['content-type'], 'text/plain')
        self.assertNotIn('x-amz-meta-empty', request['headers'])
        self.assertTrue(request['headers']['user-agent'].startswith('s3engine/'))

    def test_accelerate_endpoint(self):
        s3 = make_s3()
        s3.set_s3_transfer_accelerate('s3-accelerate.amazonaws.com')
        request = s3.get_request_options({'method': 'PUT', 'bucket': 'mybucket',
                                          'object': 'key'}, 'eu-west-1')
        self.assertEqual(request['host'], 'mybucket.s3-accelerate.amazonaws.com')
        # only object requests are accelerated
        request = s3.get_request_options({'method': 'GET', 'bucket': 'mybucket'}, 'eu-west-1')
        self.assertEqual(request['host'], 'mybucket.s3.eu-west-1.amazonaws.com')

    def test_accelerate_endpoint_from_config(self):
        s3 = make_s3(accelerate_endpoint='https://s3-accelerate.amazonaws.com')
        self.assertEqual(s3.accelerate_endpoint, 's3-accelerate.amazonaws.com')

    def test_accelerate_rejects_dotted_bucket(self):
        s3 = make_s3()
        s3.set_s3_transfer_accelerate('s3-accelerate.amazonaws.com')
        self.assertRaises(ParameterError, s3.get_request_options,
                          {'method': 'PUT', 'bucket': 'my.bucket', 'object': 'key'}, 'us-east-1')

    def test_accelerate_ignored_on_other_hosts(self):
        s3 = make_s3(host_base='minio.local', path_style=True)
        s3.set_s3_transfer_accelerate('s3-accelerate.amazonaws.com')
        request = s3.get_request_options({'method': 'PUT', 'bucket': 'mybucket',
                                          'object': 'key'}, 'us-east-1')
        self.assertEqual(request['host'], 'minio.local')
        self.assertEqual(request['path'], '/mybucket/key')

# vim:et:ts=4:sts=4:ai
