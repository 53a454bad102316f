"""A module providing the install-time locations of the tools cibtxn drives."""

__all__ = ["BuildOptions"]
__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"


class BuildOptions:
    """
    Variables describing where the cluster tools and directories live.

    These mirror the values Pacemaker's own build system substitutes into
    its python package.  Anything here can be overridden at run time through
    an Environment instance, so these are only the defaults.
    """

    SBIN_DIR = "/usr/sbin"
    """ Where the cluster command line tools are installed """

    CIB_DIR = "/var/lib/pacemaker/cib"
    """ Where the CIB is kept.  Only root and the cluster user may read it,
        which is why temporary copies of the CIB are written here too. """

    PCS_PATH = "%s/pcs" % SBIN_DIR
    CRM_DIFF_PATH = "%s/crm_diff" % SBIN_DIR
    CRM_SIMULATE_PATH = "%s/crm_simulate" % SBIN_DIR
    CRM_RESOURCE_PATH = "%s/crm_resource" % SBIN_DIR
