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
import logging
import os
import sys

from logging import debug, info, warning, error
from optparse import OptionParser, IndentedHelpFormatter

from . import PkgInfo
from .Config import Config
from .Credentials import AwsCredentialFileProvider
from .Exceptions import *
from .ExitCodes import *
from .S3 import S3
from .Utils import formatSize


def output(message):
    sys.stdout.write(message + "\n")
    sys.stdout.flush()


def parse_s3_uri(uri, need_object=False):
    """'s3://bucket/some/object' -> ('bucket', 'some/object')"""
    if not uri.startswith("s3://"):
        raise ParameterError("Expecting S3 URI like s3://bucket/object instead of '%s'" % uri)
    bucket, _, object = uri[5:].partition("/")
    if not bucket:
        raise ParameterError("Missing bucket name in '%s'" % uri)
    if need_object and not object:
        raise ParameterError("Expecting S3 URI with an object name instead of '%s'" % uri)
    return bucket, object


def object_size(s3, bucket, object):
    response = s3.make_request_omit({'method': 'HEAD', 'bucket': bucket, 'object': object})
    return int(response.headers.get('content-length', 0))


def cmd_object_put(s3, args):
    filename = args[0]
    bucket, object = parse_s3_uri(args[1], need_object=True)
    if filename == "-":
        stream = io.open(sys.stdin.fileno(), mode='rb', closefd=False)
        metadata = {}
        if s3.config.mime_type:
            metadata['content-type'] = s3.config.mime_type
        response = s3.put_object(bucket, object, stream, metadata=metadata)
    else:
        response = s3.fput_object(bucket, object, filename)
    output(u"'%s' -> 's3://%s/%s' (etag %s)" % (filename, bucket, object, response['etag']))
    return EX_OK


def cmd_abort_multipart(s3, args):
    bucket, object = parse_s3_uri(args[0], need_object=True)
    if len(args) > 1:
        s3.abort_multipart_upload(bucket, object, args[1])
        aborted = [args[1]]
    else:
        aborted = s3.remove_incomplete_upload(bucket, object)
    for upload_id in aborted:
        output(u"s3://%s/%s" % (bucket, object))
        output(u"   %s" % upload_id)
    if not aborted:
        warning(u"No incomplete upload found for s3://%s/%s" % (bucket, object))
    return EX_OK


def cmd_list_multipart(s3, args):
    bucket, prefix = parse_s3_uri(args[0])
    output(u"s3://%s/%s" % (bucket, prefix))
    output(u"Initiated\tPath\tId")
    for upload in s3.list_incomplete_uploads(bucket, prefix):
        output(u"%s\ts3://%s/%s\t%s" % (upload['initiated'] and upload['initiated'].isoformat() or "-",
                                        bucket, upload['key'], upload['upload_id']))
    return EX_OK


def cmd_bucket_location(s3, args):
    bucket, _ = parse_s3_uri(args[0])
    output(u"s3://%s/" % bucket)
    output(u"   Location:  %s" % s3.get_bucket_region(bucket))
    return EX_OK


def cmd_object_copy(s3, args):
    src_bucket, src_object = parse_s3_uri(args[0], need_object=True)
    dst_bucket, dst_object = parse_s3_uri(args[1], need_object=True)
    size = object_size(s3, src_bucket, src_object)
    debug(u"Source size: %d%sB" % formatSize(size, human_readable=True))
    response = s3.copy_object_multipart(src_bucket, src_object, size, dst_bucket, dst_object)
    output(u"remote copy: 's3://%s/%s' -> 's3://%s/%s' (etag %s)"
           % (src_bucket, src_object, dst_bucket, dst_object, response['etag']))
    return EX_OK


commands = {
    "put" : ("Put file into bucket", "FILE s3://BUCKET/OBJECT", cmd_object_put, 2),
    "abortmp" : ("Abort a multipart upload", "s3://BUCKET/OBJECT [Id]", cmd_abort_multipart, 1),
    "multipart" : ("Show multipart uploads", "s3://BUCKET[/PREFIX]", cmd_list_multipart, 1),
    "location" : ("Get bucket location", "s3://BUCKET", cmd_bucket_location, 1),
    "cp" : ("Copy object in parts", "s3://BUCKET1/OBJECT1 s3://BUCKET2/OBJECT2", cmd_object_copy, 2),
}


class MyHelpFormatter(IndentedHelpFormatter):
    def format_epilog(self, epilog):
        if epilog:
            return "\n" + epilog + "\n"
        else:
            return ""


def format_commands():
    help = "Commands:\n"
    for cmd in sorted(commands):
        help += "  %s\n      %s %s %s\n" % (commands[cmd][0], PkgInfo.package, cmd, commands[cmd][1])
    return help


def get_optparser():
    optparser = OptionParser(usage = "%prog [options] COMMAND [parameters]",
                             version = "%%prog %s" % PkgInfo.version,
                             formatter = MyHelpFormatter(),
                             epilog = format_commands())
    home = os.getenv("HOME") or os.path.expanduser("~")
    optparser.set_defaults(config = os.path.join(home, ".s3cfg"))
    optparser.add_option("-c", "--config", dest="config", metavar="FILE", help="Config file name. Defaults to $HOME/.s3cfg")
    optparser.add_option("--dump-config", dest="dump_config", action="store_true", help="Dump current configuration after parsing config files and command line options and exit.")
    optparser.add_option("-d", "--debug", dest="verbosity", action="store_const", const=logging.DEBUG, help="Enable debug output")
    optparser.add_option("-v", "--verbose", dest="verbosity", action="store_const", const=logging.INFO, help="Enable verbose output")
    optparser.add_option("--access_key", dest="access_key", help="AWS Access Key")
    optparser.add_option("--secret_key", dest="secret_key", help="AWS Secret Key")
    optparser.add_option("--access_token", dest="access_token", help="AWS Access Token")
    optparser.add_option("--profile", dest="profile", help="Profile of the AWS credentials file to use when no key is configured")
    optparser.add_option("--host", dest="host_base", metavar="HOSTNAME", help="HOSTNAME:PORT of the S3 endpoint")
    optparser.add_option("--region", "--bucket-location", dest="bucket_location", help="Region of every bucket, disables the location lookup")
    optparser.add_option("--path-style", dest="path_style", action="store_true", help="Use path style requests")
    optparser.add_option("--virtual-host", dest="path_style", action="store_false", help="Use virtual host style requests, bucket.HOSTNAME")
    optparser.add_option("--ssl", dest="use_https", action="store_true", help="Use HTTPS connection when communicating with S3.")
    optparser.add_option("--no-ssl", dest="use_https", action="store_false", help="Don't use HTTPS.")
    optparser.add_option("--accelerate-endpoint", dest="accelerate_endpoint", metavar="HOSTNAME", help="S3 transfer acceleration endpoint")
    optparser.add_option("--multipart-chunk-size-mb", dest="multipart_chunk_size_mb", type="int", metavar="SIZE", help="Size of each chunk of a multipart upload, between 5 and 5120 MB")
    optparser.add_option("-m", "--mime-type", dest="mime_type", metavar="MIME/TYPE", help="Force MIME-type of uploaded files")
    optparser.add_option("--no-mime-magic", dest="use_mime_magic", action="store_false", help="Don't use mime magic when guessing MIME-type.")
    return optparser


def main(argv=None):
    optparser = get_optparser()
    (options, args) = optparser.parse_args(argv)

    ## Some mucking with logging levels to enable
    ## debugging/verbose output for config file parser on request
    default_verbosity = Config.verbosity
    logging.basicConfig(level=options.verbosity or default_verbosity,
                        format='%(levelname)s: %(message)s')

    configfile = options.config if os.path.isfile(options.config) else None
    if not configfile:
        debug(u"Config file %s not found, using defaults" % options.config)
    try:
        cfg = Config(configfile, options.access_key, options.secret_key, options.access_token)
        ## Update Config with the command line parameters
        for option in ("host_base", "bucket_location", "path_style", "use_https",
                       "accelerate_endpoint", "multipart_chunk_size_mb", "mime_type",
                       "use_mime_magic"):
            value = getattr(options, option)
            if value is not None:
                cfg.update_option(option, value)
    except (IOError, ValueError) as e:
        error(u"Error in the configuration: %s" % e)
        return EX_CONFIG

    ## And again some logging level adjustments
    ## according to configfile and command line parameters
    if options.verbosity:
        cfg.verbosity = options.verbosity
    logging.root.setLevel(cfg.verbosity)

    if options.dump_config:
        cfg.dump_config(sys.stdout)
        return EX_OK

    if len(args) < 1:
        optparser.print_help()
        error(u"Missing command. Please run with --help for more information.")
        return EX_USAGE

    command = args.pop(0)
    try:
        debug(u"Command: %s" % commands[command][0])
        ## We must do this lookup in extra step to
        ## avoid catching all KeyError exceptions
        ## from inner functions.
        cmd_func = commands[command][2]
    except KeyError as e:
        error(u"Invalid command: %s" % command)
        return EX_USAGE

    if len(args) < commands[command][3]:
        error(u"Not enough parameters for command '%s'" % command)
        return EX_USAGE

    credential_provider = None
    if not cfg.access_key and (options.profile or os.path.isfile(AwsCredentialFileProvider().get_filename())):
        info(u"Using the AWS credentials file")
        credential_provider = AwsCredentialFileProvider(profile=options.profile,
                                                        encoding=cfg.encoding)

    try:
        s3 = S3(cfg, credential_provider=credential_provider)
        return cmd_func(s3, args)
    except S3Error as e:
        error(u"S3 error: %s" % e)
        return e.get_error_code()
    except ParameterError as e:
        error(u"Parameter problem: %s" % e)
        return EX_USAGE
    except InvalidFileError as e:
        error(u"Invalid file: %s" % e)
        return EX_IOERR
    except S3CredentialsError as e:
        error(u"Credentials problem: %s" % e)
        return EX_CONFIG
    except S3SSLError as e:
        error(u"SSL error: %s" % e)
        return EX_GENERAL
    except XmlParseError as e:
        error(u"Malformed response from the server: %s" % e)
        return EX_GENERAL
    except S3Exception as e:
        error(u"%s" % e)
        return EX_GENERAL
    except KeyboardInterrupt:
        error(u"Interrupted by the user")
        return EX_BREAK

# vim:et:ts=4:sts=4:ai
