# Copyright 2004-2026 the Pacemaker project contributors
#
# The version control history for this file may have further details.
#
# This source code is licensed under the GNU Lesser General Public License
# version 2.1 or later (LGPLv2.1+) WITHOUT ANY WARRANTY.

__all__ = ["DiffStatus", "ExitStatus"]

from enum import IntEnum, unique

# The subset of include/crm/common/results.h that the tools we drive
# report back to us
@unique
class ExitStatus(IntEnum):
    OK                   =   0
    ERROR                =   1
    INVALID_PARAM        =   2
    INSUFFICIENT_PRIV    =   4
    NOT_INSTALLED        =   5
    NOT_CONFIGURED       =   6
    NOT_RUNNING          =   7
    USAGE                =  64
    DATAERR              =  65
    NOINPUT              =  66
    CANTCREAT            =  73
    TEMPFAIL             =  75
    NOPERM               =  77
    CONFIG               =  78
    FATAL                = 100
    DIGEST               = 104
    NOSUCH               = 105
    EXISTS               = 108
    TIMEOUT              = 124
    NONE                 = 193
    MAX                  = 255

# crm_diff overloads the first two exit codes: anything else is an error
@unique
class DiffStatus(IntEnum):
    SAME                 =   0
    DIFFERENT            =   1
