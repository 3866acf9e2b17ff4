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
import os

from configparser import (NoOptionError, NoSectionError,
                          MissingSectionHeaderError, ParsingError,
                          ConfigParser as PyConfigParser)
from logging import debug, warning

from .BaseUtils import dateS3toPython, utcnow
from .Exceptions import S3CredentialsError

__all__ = []


class Credentials(object):
    """access key, secret key and the optional session token and
    expiration date that come with temporary credentials"""
    def __init__(self, access_key=u"", secret_key=u"", session_token=None,
                 expiration=None):
        self.access_key = access_key or u""
        self.secret_key = secret_key or u""
        self.session_token = session_token or None
        if expiration and not hasattr(expiration, "tzinfo"):
            expiration = dateS3toPython(expiration)
        self.expiration = expiration

    def is_anonymous(self):
        return not (self.access_key and self.secret_key)

    def is_expired(self):
        if self.expiration is None:
            return False
        return utcnow() >= self.expiration

    def __repr__(self):
        return "<Credentials access_key=%s...%d_chars anonymous=%s>" % (
            self.access_key[:2], len(self.access_key), self.is_anonymous())
__all__.append("Credentials")


class CredentialProvider(object):
    """
    Base class of the objects queried for fresh credentials before
    every request. Failures must be raised as S3CredentialsError.
    """
    def get_credentials(self):
        raise NotImplementedError()
__all__.append("CredentialProvider")


class StaticCredentialProvider(CredentialProvider):
    def __init__(self, access_key, secret_key, session_token=None):
        self.credentials = Credentials(access_key, secret_key, session_token)

    def get_credentials(self):
        return self.credentials
__all__.append("StaticCredentialProvider")


class EnvCredentialProvider(CredentialProvider):
    """Credentials from the AWS_* environment variables, read at each call"""
    def get_credentials(self):
        env_access_key = os.getenv('AWS_ACCESS_KEY') or os.getenv('AWS_ACCESS_KEY_ID')
        env_secret_key = os.getenv('AWS_SECRET_KEY') or os.getenv('AWS_SECRET_ACCESS_KEY')
        env_access_token = os.getenv('AWS_SESSION_TOKEN') or os.getenv('AWS_SECURITY_TOKEN')
        if not env_access_key:
            raise S3CredentialsError("AWS_ACCESS_KEY environment variable is not set")
        if not env_secret_key:
            raise S3CredentialsError(
                "AWS_ACCESS_KEY environment variable is used but"
                " AWS_SECRET_KEY variable is missing")
        return Credentials(env_access_key, env_secret_key, env_access_token)
__all__.append("EnvCredentialProvider")


class AwsCredentialFileProvider(CredentialProvider):
    """
    Credentials of one profile of the AWS shared credentials file
    (~/.aws/credentials, $AWS_SHARED_CREDENTIALS_FILE or
    $AWS_CREDENTIAL_FILE). The file is read again at each call so
    that rotated keys are picked up.
    """
    def __init__(self, filename=None, profile=None, encoding="UTF-8"):
        self.filename = filename
        self.profile = profile
        self.encoding = encoding

    def get_filename(self):
        if self.filename:
            return self.filename
        credential_file_from_env = os.environ.get('AWS_SHARED_CREDENTIALS_FILE') \
            or os.environ.get('AWS_CREDENTIAL_FILE')
        if credential_file_from_env and os.path.isfile(credential_file_from_env):
            return credential_file_from_env
        return os.path.expanduser('~/.aws/credentials')

    def get_profile(self):
        return self.profile or os.environ.get('AWS_PROFILE', "default")

    def read_config(self, aws_credential_file):
        config = PyConfigParser()
        debug("Reading AWS credentials from %s" % (aws_credential_file))
        try:
            with io.open(aws_credential_file, "r", encoding=self.encoding) as fp:
                config_string = fp.read()
        except IOError as e:
            raise S3CredentialsError("Errno %s accessing credentials file %s" %
                                     (e.errno, aws_credential_file))
        try:
            try:
                config.read_file(io.StringIO(config_string))
            except MissingSectionHeaderError:
                # if header is missing, this could be deprecated
                # credentials file format as described here:
                # https://blog.csanchez.org/2011/05/
                # then add the default header and try again
                config_string = u'[default]\n' + config_string
                config.read_file(io.StringIO(config_string))
        except ParsingError as exc:
            raise S3CredentialsError(
                "Error reading aws_credential_file "
                "(%s): %s" % (aws_credential_file, str(exc)))
        return config

    def get_credentials(self):
        aws_credential_file = self.get_filename()
        config = self.read_config(aws_credential_file)
        profile = self.get_profile()
        debug("Using AWS profile '%s'" % (profile))

        # get_key - read the aws profile credentials, including the
        # legacy key names of the default profile
        def get_key(key, legacy_key, print_warning=True):
            try:
                return config.get(profile, key)
            except NoSectionError:
                raise S3CredentialsError("Couldn't find AWS Profile '%s' in the credentials file '%s'"
                                         % (profile, aws_credential_file))
            except NoOptionError as e:
                if print_warning:
                    warning("Couldn't find key '%s' for the AWS Profile "
                            "'%s' in the credentials file '%s'",
                            e.option, e.section, aws_credential_file)
            if legacy_key:
                try:
                    result = config.get("default", legacy_key)
                    warning("Legacy configuration key '%s' used, please use"
                            " the standardized aws_* key names", legacy_key)
                    return result
                except (NoSectionError, NoOptionError):
                    pass
            return None

        access_key = get_key("aws_access_key_id", "AWSAccessKeyId")
        secret_key = get_key("aws_secret_access_key", "AWSSecretKey")
        session_token = get_key("aws_session_token", None, False)
        if not access_key or not secret_key:
            raise S3CredentialsError("Incomplete credentials for AWS Profile '%s' in '%s'"
                                     % (profile, aws_credential_file))
        return Credentials(access_key, secret_key, session_token)
__all__.append("AwsCredentialFileProvider")

# vim:et:ts=4:sts=4:ai
