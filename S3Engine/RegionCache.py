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
from threading import Lock

__all__ = []

DEFAULT_REGION = "us-east-1"
__all__.append("DEFAULT_REGION")


class RegionCache(object):
    """
    bucket -> region map shared by the requests of one or more clients.

    Lookups do not lock, writes and invalidations do. Entries live for
    the whole process unless a failed request for the bucket drops them.
    """
    def __init__(self):
        self._regions = {}
        self._lock = Lock()

    def get(self, bucket):
        return self._regions.get(bucket)

    def set(self, bucket, region):
        with self._lock:
            debug(u"RegionCache: %s -> %s", bucket, region)
            self._regions[bucket] = region

    def invalidate(self, bucket):
        with self._lock:
            if self._regions.pop(bucket, None) is not None:
                debug(u"RegionCache: dropped %s", bucket)

    def __contains__(self, bucket):
        return bucket in self._regions

    def __len__(self):
        return len(self._regions)
__all__.append("RegionCache")

# vim:et:ts=4:sts=4:ai
