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

# patterned on /usr/include/sysexits.h

EX_OK                = 0
EX_GENERAL           = 1
EX_SERVERMOVED       = 10   # 301: Moved permanently & 307: Moved temp
EX_SERVERERROR       = 11   # 400, 405, 411, 416, 417, 501: Bad request, 504: Gateway Time-out
EX_NOTFOUND          = 12   # 404: Not found
EX_CONFLICT          = 13   # 409: Conflict (ex: bucket error)
EX_PRECONDITION      = 14   # 412: Precondition failed
EX_SERVICE           = 15   # 503: Service not available or slow down
EX_USAGE             = 64   # The command was used incorrectly (e.g. bad command line syntax)
EX_DATAERR           = 65   # Failed file transfer, upload or download
EX_SOFTWARE          = 70   # internal software error (e.g. S3 error of unknown specificity)
EX_IOERR             = 74   # An error occurred while doing I/O on some file.
EX_ACCESSDENIED      = 77   # Insufficient permissions to perform the operation on S3
EX_CONFIG            = 78   # Configuration file error
_EX_SIGNAL           = 128
_EX_SIGINT           = 2
EX_BREAK             = _EX_SIGNAL + _EX_SIGINT # Control-C (KeyboardInterrupt raised)

# vim:et:ts=4:sts=4:ai
