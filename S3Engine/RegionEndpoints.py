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

## Regions whose endpoint does not follow the 's3.<region>.amazonaws.com' rule
region_endpoints = {'us-east-1'      : 's3.amazonaws.com',
                    'US'             : 's3.amazonaws.com',
                    'EU'             : 's3.eu-west-1.amazonaws.com',
                    'cn-north-1'     : 's3.cn-north-1.amazonaws.com.cn',
                    'cn-northwest-1' : 's3.cn-northwest-1.amazonaws.com.cn',
                    }

def region_endpoint(region):
    if region in region_endpoints:
        return region_endpoints[region]
    if not region:
        return region_endpoints['us-east-1']
    return 's3.%s.amazonaws.com' % region

## Old names some servers still send back as LocationConstraint
legacy_regions = {'EU' : 'eu-west-1',
                  'US' : 'us-east-1',
                  }

def normalize_region(location):
    if not location:
        return 'us-east-1'
    return legacy_regions.get(location, location)

# vim:et:ts=4:sts=4:ai
