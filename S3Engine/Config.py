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
import locale
import logging
import os
import re

from logging import debug, warning

from .Utils import MIN_PART_SIZE, MAX_PART_SIZE, MAX_PARTS_COUNT, SIZE_1MB
from .Exceptions import ParameterError


def is_bool_true(value):
    """Check to see if a string is true, yes, on, or 1

    value may be a str, or a bool.

    Return True if it is
    """
    if type(value) == str:
        return value.lower() in ["true", "yes", "on", "1"]
    elif type(value) == bool and value == True:
        return True
    else:
        return False


def is_bool_false(value):
    """Check to see if a string is false, no, off, or 0

    value may be a str, or a bool.

    Return True if it is
    """
    if type(value) == str:
        return value.lower() in ["false", "no", "off", "0"]
    elif type(value) == bool and value == False:
        return True
    else:
        return False


def is_bool(value):
    """Check a string value to see if it is bool"""
    return is_bool_true(value) or is_bool_false(value)


class Config(object):
    """
    Options of one client. Class attributes hold the defaults, an
    instance only stores what was read from a config file, the
    environment or the command line.
    """
    _doc = {}
    access_key = u""
    secret_key = u""
    access_token = u""
    host_base = u"s3.amazonaws.com"
    # 0 is the default port of the protocol
    port = 0
    use_https = True
    path_style = True
    _doc['path_style'] = u"Path style requests to endpoints other than Amazon S3"
    # Empty means that the region of every bucket is looked up
    bucket_location = u""
    _doc['bucket_location'] = u"Fixed region of every request, disables region lookup"
    accelerate_endpoint = u""
    _doc['accelerate_endpoint'] = u"Transfer acceleration host, like s3-accelerate.amazonaws.com"
    verbosity = logging.WARNING
    default_mime_type = u"binary/octet-stream"
    guess_mime_type = True
    use_mime_magic = True
    mime_type = u""
    # 0 lets the client pick the part size from the object size
    multipart_chunk_size_mb = 0    # MiB
    # Maximum chunks on AWS S3, could be different on other S3-compatible APIs
    multipart_max_chunks = MAX_PARTS_COUNT
    encoding = locale.getpreferredencoding() or "UTF-8"
    # If too big, this value can be overridden by the OS socket timeouts max values.
    # For example, on Linux, a connection attempt will automatically timeout after 120s.
    socket_timeout = 300
    connection_pooling = True
    # How long in seconds a connection can be kept idle in the pool and still
    # be alive.
    connection_max_age = 5
    ca_certs_file = u""
    check_ssl_certificate = True
    check_ssl_hostname = True
    user_agent_suffix = u""

    def __init__(self, configfile=None, access_key=None, secret_key=None, access_token=None):
        if configfile:
            self.read_config_file(configfile)

        # override these if passed on the command-line
        # Allow blank secret_key
        if access_key and secret_key is not None:
            self.access_key = access_key
            self.secret_key = secret_key
        if access_token:
            self.access_token = access_token

        if len(self.access_key) == 0:
            self.env_config()

    def env_config(self):
        env_access_key = os.getenv('AWS_ACCESS_KEY') or os.getenv('AWS_ACCESS_KEY_ID')
        env_secret_key = os.getenv('AWS_SECRET_KEY') or os.getenv('AWS_SECRET_ACCESS_KEY')
        env_access_token = os.getenv('AWS_SESSION_TOKEN') or os.getenv('AWS_SECURITY_TOKEN')
        if not env_access_key:
            return
        if not env_secret_key:
            raise ValueError(
                "AWS_ACCESS_KEY environment variable is used but"
                " AWS_SECRET_KEY variable is missing"
            )
        debug("Config: using credentials from the environment")
        self.access_key = env_access_key
        self.secret_key = env_secret_key
        if env_access_token:
            self.access_token = env_access_token

    def option_list(self):
        retval = []
        for option in dir(self):
            ## Skip attributes that start with underscore or are not string, int or bool
            option_type = type(getattr(Config, option, None))
            if option.startswith("_") or \
               not (option_type in (
                    type(u"string"), # str
                        type(42),   # int
                    type(True))):   # bool
                continue
            retval.append(option)
        return retval

    def read_config_file(self, configfile):
        cp = ConfigParser(configfile)
        for option in self.option_list():
            _option = cp.get(option)
            if _option is not None:
                _option = _option.strip()
            self.update_option(option, _option)
        self._parsed_file = configfile

    def dump_config(self, stream):
        ConfigDumper(stream).dump(u"default", self)

    def update_option(self, option, value):
        if value is None:
            return

        #### Handle environment reference
        if str(value).startswith("$"):
            return self.update_option(option, os.getenv(value[1:]))

        #### Special treatment of some options
        ## verbosity must be known to "logging" module
        if option == "verbosity":
            # support integer verbosities
            try:
                value = int(value)
            except ValueError:
                try:
                    # otherwise it must be a key known to the logging module
                    value = logging._nameToLevel[value.upper()]
                except KeyError:
                    raise ValueError("Config: verbosity level '%s' is not valid" % value)

        ## allow yes/no, true/false, on/off and 1/0 for boolean options
        elif type(getattr(Config, option, None)) is type(True):
            if is_bool_true(value):
                value = True
            elif is_bool_false(value):
                value = False
            else:
                raise ValueError("Config: value of option '%s' must be Yes or No, not '%s'" % (option, value))

        elif type(getattr(Config, option, None)) is type(42):     # int
            try:
                value = int(value)
            except ValueError:
                raise ValueError("Config: value of option '%s' must be an integer, not '%s'" % (option, value))

        elif option in ["host_base", "accelerate_endpoint"]:
            if value.startswith("http://"):
                value = value[7:]
            elif value.startswith("https://"):
                value = value[8:]

        setattr(self, option, value)

    def get_part_size(self):
        """
        Part size forced by 'multipart_chunk_size_mb', in bytes, or None
        when the client should compute it from the object size.
        """
        if not self.multipart_chunk_size_mb:
            return None
        part_size = self.multipart_chunk_size_mb * SIZE_1MB
        if part_size < MIN_PART_SIZE or part_size > MAX_PART_SIZE:
            raise ParameterError("Chunk size %d MB must be between %d MB and %d MB"
                                 % (self.multipart_chunk_size_mb,
                                    MIN_PART_SIZE // SIZE_1MB, MAX_PART_SIZE // SIZE_1MB))
        return part_size


class ConfigParser(object):
    def __init__(self, file, sections = []):
        self.cfg = {}
        self.parse_file(file, sections)

    def parse_file(self, file, sections = []):
        debug("ConfigParser: Reading file '%s'" % file)
        if type(sections) != type([]):
            sections = [sections]
        in_our_section = True
        r_comment = re.compile(r'^\s*#.*')
        r_empty = re.compile(r'^\s*$')
        r_section = re.compile(r'^\[([^\]]+)\]')
        r_data = re.compile(r'^\s*(?P<key>\w+)\s*=\s*(?P<value>.*)')
        r_quotes = re.compile(r'^"(.*)"\s*$')
        with io.open(file, "r", encoding=self.get('encoding', 'UTF-8')) as fp:
            for line in fp:
                if r_comment.match(line) or r_empty.match(line):
                    continue
                is_section = r_section.match(line)
                if is_section:
                    section = is_section.groups()[0]
                    in_our_section = (section in sections) or (len(sections) == 0)
                    continue
                is_data = r_data.match(line)
                if is_data and in_our_section:
                    data = is_data.groupdict()
                    if r_quotes.match(data["value"]):
                        data["value"] = data["value"][1:-1]
                    self.__setitem__(data["key"], data["value"])
                    if data["key"] in ("access_key", "secret_key", "access_token"):
                        print_value = ("%s...%d_chars...%s") % (data["value"][:2], len(data["value"]) - 3, data["value"][-1:])
                    else:
                        print_value = data["value"]
                    debug("ConfigParser: %s->%s" % (data["key"], print_value))
                    continue
                warning("Ignoring invalid line in '%s': %s" % (file, line))

    def __getitem__(self, name):
        return self.cfg[name]

    def __setitem__(self, name, value):
        self.cfg[name] = value

    def get(self, name, default = None):
        if name in self.cfg:
            return self.cfg[name]
        return default


class ConfigDumper(object):
    def __init__(self, stream):
        self.stream = stream

    def dump(self, section, config):
        self.stream.write(u"[%s]\n" % section)
        for option in config.option_list():
            value = getattr(config, option)
            if option == "verbosity":
                # we turn level numbers back into strings if possible
                if isinstance(value, int):
                    value = logging._levelToName.get(value, value)
            self.stream.write(u"%s = %s\n" % (option, value))

# vim:et:ts=4:sts=4:ai
