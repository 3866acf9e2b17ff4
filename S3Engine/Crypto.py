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

import hmac
import re
from base64 import encodebytes as encodestring
from hashlib import sha256
from logging import debug

from .BaseUtils import encode_to_s3, decode_from_s3, s3_quote, md5, \
    makeDateLong, makeDateShort

__all__ = []

SIGN_V4_ALGORITHM = 'AWS4-HMAC-SHA256'
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'
RE_SHA256_HEX = re.compile(r"^[0-9a-fA-F]{64}\Z")

## Headers that proxies and http libraries are free to rewrite
IGNORED_HEADERS = ('authorization', 'content-length', 'content-type',
                   'user-agent')


def format_param_str(params, always_have_equal=False, limited_keys=None):
    """
    Format URL parameters from a params dict and returns
    ?parm1=val1&parm2=val2 or an empty string if there
    are no parameters.  Output of this function should
    be appended directly to the request path.
    - Set "always_have_equal" to always have the "=" char for a param even when
    there is no value for it.
    - Set "limited_keys" list to restrict the param string to keys that are
    defined in it.
    """
    if not params:
        return ""

    param_str = ""
    equal_str = always_have_equal and u'=' or ''
    for key in sorted(params.keys()):
        if limited_keys and key not in limited_keys:
            continue
        value = params[key]
        if value in (None, ""):
            param_str += "&%s%s" % (s3_quote(key, unicode_output=True), equal_str)
        else:
            param_str += "&%s=%s" % (key, s3_quote(value, unicode_output=True))
    return param_str and "?" + param_str[1:]
__all__.append("format_param_str")


def sign(key, msg):
    return hmac.new(key, encode_to_s3(msg), sha256).digest()


def getSignatureKey(key, dateStamp, regionName, serviceName):
    """
    Input: unicode params
    Output: bytes
    """
    kDate = sign(encode_to_s3('AWS4' + key), dateStamp)
    kRegion = sign(kDate, regionName)
    kService = sign(kRegion, serviceName)
    kSigning = sign(kService, 'aws4_request')
    return kSigning
__all__.append("getSignatureKey")


def get_signed_headers(headers):
    return sorted(key.lower() for key in headers
                  if key.lower() not in IGNORED_HEADERS)


def get_canonical_query(query):
    """
    Sort the already escaped 'a=b&c' query string by parameter,
    and give every parameter an '=' sign.
    """
    if not query:
        return ''
    params = []
    for element in query.split('&'):
        if not element:
            continue
        if '=' not in element:
            element += '='
        params.append(element)
    return '&'.join(sorted(params, key=lambda param: param.split('=', 1)[0]))


def get_canonical_request(method, path, headers, signed_headers, payload_hash):
    if '?' in path:
        canonical_uri, query = path.split('?', 1)
    else:
        canonical_uri, query = path, ''

    canonical_headers = ''
    for header in signed_headers:
        canonical_headers += header + ':' + str(headers[header]).strip() + '\n'

    return '\n'.join([method.upper(),
                      canonical_uri,
                      get_canonical_query(query),
                      canonical_headers,
                      ';'.join(signed_headers),
                      payload_hash])


def sign_request_v4(options, access_key, secret_key, region, date, sha256sum,
                    service='s3'):
    """
    Compute the 'authorization' header value for a request.

    'options' are the finalized request options: 'method', 'path' (with
    the query string already escaped) and a lower-cased 'headers' dict
    already holding 'host', 'x-amz-date' and 'x-amz-content-sha256'.
    Only the inputs are used, so the same inputs give the same signature.
    """
    headers = options['headers']
    datestamp = makeDateShort(date)
    amzdate = makeDateLong(date)
    signed_headers = get_signed_headers(headers)

    canonical_request = get_canonical_request(options['method'], options['path'],
                                              headers, signed_headers, sha256sum)
    debug('Canonical Request:\n%s\n----------------------' % canonical_request)

    credential_scope = datestamp + '/' + region + '/' + service + '/' + 'aws4_request'
    string_to_sign = SIGN_V4_ALGORITHM + '\n' + amzdate + '\n' + credential_scope + '\n' \
        + decode_from_s3(sha256(encode_to_s3(canonical_request)).hexdigest())

    signing_key = getSignatureKey(secret_key, datestamp, region, service)
    signature = decode_from_s3(hmac.new(signing_key, encode_to_s3(string_to_sign), sha256).hexdigest())
    return SIGN_V4_ALGORITHM + ' ' + 'Credential=' + access_key + '/' + credential_scope \
        + ', ' + 'SignedHeaders=' + ';'.join(signed_headers) + ', ' + 'Signature=' + signature
__all__.append("sign_request_v4")


def sha256_hex(buffer):
    return sha256(encode_to_s3(buffer)).hexdigest()
__all__.append("sha256_hex")


def md5_hex(buffer):
    return md5(encode_to_s3(buffer)).hexdigest()
__all__.append("md5_hex")


def generate_content_md5(body):
    m = md5(encode_to_s3(body))
    base64md5 = encodestring(m.digest())
    base64md5 = decode_from_s3(base64md5)
    if base64md5[-1] == '\n':
        base64md5 = base64md5[0:-1]
    return decode_from_s3(base64md5)
__all__.append("generate_content_md5")


def is_sha256_hex(token):
    return isinstance(token, str) and RE_SHA256_HEX.match(token) is not None
__all__.append("is_sha256_hex")


# vim:et:ts=4:sts=4:ai
