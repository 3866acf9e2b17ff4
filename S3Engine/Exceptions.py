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

from logging import debug

from . import ExitCodes
from .BaseUtils import getTreeFromXml, decode_from_s3

## External exceptions

from ssl import SSLError as S3SSLError
from xml.etree.ElementTree import ParseError as XmlParseError


## s3engine exceptions

class S3Exception(Exception):
    def __init__(self, message=""):
        super(S3Exception, self).__init__(message)
        self.message = decode_from_s3(message)

    def __str__(self):
        return self.message


## Fixed code/message pairs for error responses that came without a body
STATUS_ERRORS = {
    301: ("MovedPermanently", "Moved Permanently"),
    307: ("TemporaryRedirect", "Are you using the correct endpoint URL?"),
    403: ("AccessDenied", "Valid and authorized credentials required"),
    404: ("NotFound", "Not Found"),
    405: ("MethodNotAllowed", "Method Not Allowed"),
    501: ("MethodNotAllowed", "Method Not Allowed"),
}


class S3Error(S3Exception):
    """
    Error returned by the remote server, either as a non-success status
    code or as an <Error> document embedded in a successful response.

    Every child of the <Error> element is kept in 'info' under its
    lower-cased tag name. The commonly used ones are also available as
    attributes: code, message, region (the hint sent along with
    AuthorizationHeaderMalformed), resource, request_id, host_id and
    bucket_region.
    """
    def __init__(self, status, code="", message="", info=None, headers=None):
        self.status = status
        self.info = dict(info or {})
        headers = headers or {}
        self.code = code or self.info.get("code", "")
        super(S3Error, self).__init__(message or self.info.get("message", "") or "")
        self.region = self.info.get("region")
        self.resource = self.info.get("resource")
        self.request_id = headers.get("x-amz-request-id") or self.info.get("requestid")
        self.host_id = headers.get("x-amz-id-2") or self.info.get("hostid")
        self.bucket_region = headers.get("x-amz-bucket-region")
        debug("S3Error: %s (%s)" % (self.status, self.code))

    def __str__(self):
        retval = u"%s " % (self.status)
        retval += (u"(%s)" % self.code)
        if self.message:
            retval += (u": %s" % self.message)
        return retval

    def get_error_code(self):
        if self.status in [301, 307]:
            return ExitCodes.EX_SERVERMOVED
        elif self.status in [400, 405, 411, 416, 417, 501, 504]:
            return ExitCodes.EX_SERVERERROR
        elif self.status == 403:
            return ExitCodes.EX_ACCESSDENIED
        elif self.status == 404:
            return ExitCodes.EX_NOTFOUND
        elif self.status == 409:
            return ExitCodes.EX_CONFLICT
        elif self.status == 412:
            return ExitCodes.EX_PRECONDITION
        elif self.status in [429, 503]:
            return ExitCodes.EX_SERVICE
        else:
            return ExitCodes.EX_SOFTWARE

    @staticmethod
    def parse_error_xml(tree):
        """
        Returns the children of the <Error> node keyed by lower-cased tag,
        or None if the document carries no <Error> node at all.
        """
        error_node = tree
        if not error_node.tag == "Error":
            error_node = tree.find(".//Error")
        if error_node is None:
            return None
        info = {}
        for child in error_node:
            if child.text:
                debug("ErrorXML: " + child.tag + ": " + repr(child.text))
                info[decode_from_s3(child.tag).lower()] = decode_from_s3(child.text)
        return info


def parse_response_error(response):
    """
    Build the S3Error matching a failed 'response'.

    The body is read in full. Malformed XML is not hidden: the
    XmlParseError propagates to the caller.
    """
    status = response.status
    headers = response.headers or {}
    for header in headers:
        debug("HttpHeader: %s: %s" % (header, headers[header]))

    data = response.read()
    if data:
        tree = getTreeFromXml(data)
        info = S3Error.parse_error_xml(tree)
        if info is not None:
            return S3Error(status, info=info, headers=headers)
        debug("No <Error> node in error response, using status code")

    code, message = STATUS_ERRORS.get(status, ("UnknownError", "%s" % status))
    return S3Error(status, code, message, headers=headers)


class S3UploadError(S3Exception):
    pass

class S3RequestError(S3Exception):
    pass

class S3ResponseError(S3Exception):
    pass

class S3CredentialsError(S3Exception):
    pass

class InvalidFileError(S3Exception):
    pass

class ParameterError(S3Exception):
    pass

# vim:et:ts=4:sts=4:ai
