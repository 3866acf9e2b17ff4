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

package = "s3engine"
version = "1.0.0"
url = "https://s3tools.org"
license = "GNU GPL v2+"
short_description = "S3 request signing engine with resumable multipart uploads"
long_description = """
S3Engine builds and signs (AWS Signature V4) requests for Amazon S3
and S3-compatible object stores, resolves bucket regions on the fly,
and uploads large objects through a resumable multipart pipeline that
skips parts already stored by a previous, interrupted attempt.
"""

# vim:et:ts=4:sts=4:ai
