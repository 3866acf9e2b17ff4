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

import re

from .Exceptions import ParameterError


__all__ = []

SIZE_1MB = 1024 * 1024
__all__.append("SIZE_1MB")

## Multipart limits of AWS S3, other S3-compatible servers may accept more
MIN_PART_SIZE = 5 * SIZE_1MB                        # 5MiB
MAX_PART_SIZE = 5 * 1024 * SIZE_1MB                 # 5GiB
MAX_OBJECT_SIZE = 5 * 1024 * 1024 * SIZE_1MB        # 5TiB
MAX_PARTS_COUNT = 10000
__all__.extend(["MIN_PART_SIZE", "MAX_PART_SIZE", "MAX_OBJECT_SIZE",
                "MAX_PARTS_COUNT"])

AMAZON_ENDPOINTS = ("s3.amazonaws.com", "s3.cn-north-1.amazonaws.com.cn")

METADATA_HEADER_PREFIX = "x-amz-meta-"
SUPPORTED_HEADERS = ("content-type", "cache-control", "content-encoding",
                     "content-disposition", "content-language",
                     "x-amz-website-redirect-location")


def formatSize(size, human_readable=False, floating_point=False):
    size = floating_point and float(size) or int(size)
    if human_readable:
        coeffs = ['K', 'M', 'G', 'T']
        coeff = ""
        while size > 2048:
            size /= 1024
            coeff = coeffs.pop(0)
        return (floating_point and float(size) or int(size), coeff)
    else:
        return (size, "")
__all__.append("formatSize")


def convertHeaderTupleListToDict(list):
    """
    Header keys are not always lowercase, make them so.
    """
    retval = {}
    for tuple in list:
        retval[tuple[0].lower()] = tuple[1]
    return retval
__all__.append("convertHeaderTupleListToDict")


def check_bucket_name(bucket):
    if not isinstance(bucket, str):
        raise ParameterError("Bucket name must be a string, not %r" % (bucket,))
    if len(bucket) < 3:
        raise ParameterError("Bucket name '%s' is too short (min 3 characters)" % bucket)
    if len(bucket) > 63:
        raise ParameterError("Bucket name '%s' is too long (max 63 characters)" % bucket)
    if ".." in bucket:
        raise ParameterError("Bucket name '%s' must not contain sequence '..'" % bucket)
    if re.search(r"[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+", bucket):
        raise ParameterError("Bucket name '%s' must not be formatted as an IP address" % bucket)
    if not re.match(r"^[a-z0-9][a-z0-9\.-]+[a-z0-9]$", bucket):
        raise ParameterError("Bucket name '%s' must only contain lowercase letters, digits, '.' and '-',"
                             " and start and end with a letter or a digit" % bucket)
    return True
__all__.append("check_bucket_name")


def check_object_name(object):
    if not isinstance(object, str):
        raise ParameterError("Object name must be a string, not %r" % (object,))
    if not object:
        raise ParameterError("Object name must not be empty")
    if len(object) > 1024:
        raise ParameterError("Object name '%s...' is too long (max 1024 characters)" % object[:32])
    return True
__all__.append("check_object_name")


def is_amazon_endpoint(endpoint):
    return endpoint in AMAZON_ENDPOINTS
__all__.append("is_amazon_endpoint")


def is_virtual_host_style(endpoint, use_https, bucket, path_style):
    """
    Per http://docs.aws.amazon.com/AmazonS3/latest/dev/VirtualHosting.html:
    "When using virtual hosted-style buckets with SSL, the SSL
    wild card certificate only matches buckets that do not contain
    periods."
    So dotted buckets always go path-style over https.
    """
    if use_https and '.' in bucket:
        return False
    return is_amazon_endpoint(endpoint) or not path_style
__all__.append("is_virtual_host_style")


def prepend_amz_meta(metadata):
    """
    Prefix user metadata keys with 'x-amz-meta-', except the keys that
    are already S3 headers on their own.
    """
    headers = {}
    for key, value in (metadata or {}).items():
        lkey = key.lower()
        if lkey.startswith(METADATA_HEADER_PREFIX) \
           or lkey == "x-amz-acl" \
           or lkey.startswith("x-amz-server-side-encryption") \
           or lkey == "x-amz-storage-class" \
           or lkey in SUPPORTED_HEADERS:
            headers[key] = value
        else:
            headers[METADATA_HEADER_PREFIX + key] = value
    return headers
__all__.append("prepend_amz_meta")


def parts_required(size):
    """Number of parts needed to copy 'size' bytes without exceeding the
    maximum object size spread over MAX_PARTS_COUNT - 1 parts."""
    max_part_size = MAX_OBJECT_SIZE // (MAX_PARTS_COUNT - 1)
    required = size // max_part_size
    if size % max_part_size:
        required += 1
    return required
__all__.append("parts_required")


def calculate_even_splits(size, start=0):
    """
    Split 'size' bytes starting at offset 'start' into parts_required(size)
    contiguous ranges whose lengths differ by one byte at most.

    Returns a list of (first_byte, last_byte) tuples, bounds included, or
    None for an empty object as there is nothing to split.
    """
    if size == 0:
        return None
    if start is None or start == -1:
        start = 0
    nr_parts = parts_required(size)
    divisor, remainder = divmod(size, nr_parts)

    splits = []
    next_start = start
    for idx in range(nr_parts):
        part_size = divisor
        if idx < remainder:
            part_size += 1
        splits.append((next_start, next_start + part_size - 1))
        next_start += part_size
    return splits
__all__.append("calculate_even_splits")


# vim:et:ts=4:sts=4:ai
