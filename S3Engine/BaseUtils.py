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

import datetime
import functools
import re

from hashlib import md5
from logging import error
from urllib.parse import quote

import xml.etree.ElementTree as ET

import dateutil.parser
import dateutil.tz


__all__ = []

try:
    md5()
except ValueError as exc:
    # md5 is disabled for FIPS-compliant Python builds.
    # Since s3engine does not use md5 in a security context,
    # it is safe to allow the use of it by setting usedforsecurity to False.
    try:
        md5(usedforsecurity=False)
        md5 = functools.partial(md5, usedforsecurity=False)
    except Exception:
        raise exc
__all__.append("md5")


RE_S3_DATESTRING = re.compile('\\.[0-9]*(?:[Z\\-\\+]*?)')
RE_XML_NAMESPACE = re.compile(b'^(<?[^>]+?>\\s*|\\s*)(<\\w+) xmlns=[\'"](https?://[^\'"]+)[\'"]', re.MULTILINE)


# Date and time helpers


def dateS3toPython(date):
    """
    Convert a string formatted like '2020-06-27T15:56:34.000Z' into a
    timezone aware python datetime.
    """
    # Reset milliseconds to 000
    date = RE_S3_DATESTRING.sub(".000", date)
    return dateutil.parser.parse(date, fuzzy=True)
__all__.append("dateS3toPython")


def utcnow():
    return datetime.datetime.now(dateutil.tz.tzutc())
__all__.append("utcnow")


def makeDateLong(date):
    """'20170807T162859Z' as used by the x-amz-date header"""
    return date.strftime('%Y%m%dT%H%M%SZ')
__all__.append("makeDateLong")


def makeDateShort(date):
    """'20170807' as used by the signature v4 credential scope"""
    return date.strftime('%Y%m%d')
__all__.append("makeDateShort")


# Encoding / Decoding


def decode_from_s3(string, errors="replace"):
    """
    Convert S3 UTF-8 'string' to Unicode.
    """
    if isinstance(string, str):
        return string
    return string.decode("UTF-8", errors)
__all__.append("decode_from_s3")


def encode_to_s3(string, errors="replace"):
    """
    Convert Unicode to S3 UTF-8 'string', by default replacing
    all invalid characters with '?'.
    """
    if not isinstance(string, str):
        return string
    return string.encode("UTF-8", errors)
__all__.append("encode_to_s3")


def s3_quote(param, quote_backslashes=True, unicode_output=False):
    """
    URI encode every byte. UriEncode() must enforce the following rules:
    - URI encode every byte except the unreserved characters: 'A'-'Z', 'a'-'z', '0'-'9', '-', '.', '_', and '~'.
    - The space character is a reserved character and must be encoded as "%20" (and not as "+").
    - Each URI encoded byte is formed by a '%' and the two-digit hexadecimal value of the byte.
    - Letters in the hexadecimal value must be uppercase, for example "%1A".
    - Encode the forward slash character, '/', everywhere except in the object key name.
    For example, if the object key name is photos/Jan/sample.jpg, the forward slash in the key name is not encoded.
    """
    if quote_backslashes:
        safe_chars = "~"
    else:
        safe_chars = "~/"
    param = encode_to_s3(str(param))
    param = quote(param, safe=safe_chars)
    if unicode_output:
        return decode_from_s3(param)
    return encode_to_s3(param)
__all__.append("s3_quote")


def uri_resource_escape(string):
    """Escape an object name for a resource path, keeping '/' as is"""
    return s3_quote(string, quote_backslashes=False, unicode_output=True)
__all__.append("uri_resource_escape")


# XML helpers


def stripNameSpace(xml):
    """
    removeNameSpace(xml) -- remove top-level AWS namespace
    Operate on raw byte(utf-8) xml string. (Not unicode)
    """
    xmlns_match = RE_XML_NAMESPACE.match(xml)
    if xmlns_match:
        xmlns = xmlns_match.group(3)
        xml = RE_XML_NAMESPACE.sub(b"\\1\\2", xml, 1)
    else:
        xmlns = None
    return xml, xmlns
__all__.append("stripNameSpace")


def getTreeFromXml(xml):
    xml, xmlns = stripNameSpace(encode_to_s3(xml))
    try:
        tree = ET.fromstring(xml)
        if xmlns:
            tree.attrib['xmlns'] = xmlns
        return tree
    except Exception as e:
        error("Error parsing xml: %s", e)
        error(xml)
        raise
__all__.append("getTreeFromXml")


def getTextFromXml(xml, xpath):
    tree = getTreeFromXml(xml)
    if tree.tag.endswith(xpath):
        return decode_from_s3(tree.text) if tree.text is not None else None
    else:
        result = tree.findtext(xpath)
        return decode_from_s3(result) if result is not None else None
__all__.append("getTextFromXml")


def sanitize_etag(etag):
    """Strip the quote characters (raw or xml-escaped) S3 wraps ETags in"""
    if not etag:
        return ''
    for quote_str in ('"', '&quot;', '&#34;'):
        if etag.startswith(quote_str):
            etag = etag[len(quote_str):]
        if etag.endswith(quote_str):
            etag = etag[:-len(quote_str)]
    return etag
__all__.append("sanitize_etag")


# vim:et:ts=4:sts=4:ai
