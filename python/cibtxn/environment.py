"""Runtime configuration for cibtxn."""

__all__ = ["Environment"]
__copyright__ = "Copyright 2014-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

import os

from cibtxn.buildoptions import BuildOptions

ENV_PREFIX = "PCMK_cibtxn_"


class Environment:
    """
    A class for managing the cibtxn configuration.

    This can be treated kind of like a dictionary due to the presence of
    typical dict functions like __contains__, __getitem__, and __setitem__.
    However, it is not a dictionary so do not rely on standard dictionary
    behavior.

    Values come from three places, later ones winning: the built-in defaults,
    PCMK_cibtxn_<key> variables in the process environment, and keyword
    arguments given to the constructor.
    """

    def __init__(self, environ=None, **kwargs):
        """
        Create a new Environment instance.

        Arguments:
        environ -- A mapping to read PCMK_cibtxn_* overrides from.  If None,
                   os.environ will be used.
        kwargs  -- Explicit settings, overriding everything else
        """
        self.data = {}

        # Retry tuning applied when a caller doesn't give its own
        self["tries"] = 1
        self["try_sleep"] = 0
        self["post_success_sleep"] = 0

        # How long to wait for the cluster to settle after an update
        self["SettleTimeout"] = 600

        # Run crm_simulate too when crm_diff is trusted, and believe it
        # when the two disagree
        self["DiffCrossCheck"] = False

        self["CibDir"] = BuildOptions.CIB_DIR
        self["pcs"] = BuildOptions.PCS_PATH
        self["crm_diff"] = BuildOptions.CRM_DIFF_PATH
        self["crm_simulate"] = BuildOptions.CRM_SIMULATE_PATH
        self["crm_resource"] = BuildOptions.CRM_RESOURCE_PATH

        if environ is None:
            environ = os.environ

        self._load_environ(environ)

        for (key, value) in kwargs.items():
            self[key] = value

    def _load_environ(self, environ):
        """Apply any PCMK_cibtxn_<key> overrides for keys we know about."""
        for key in list(self.data.keys()):
            value = environ.get(f"{ENV_PREFIX}{key}")
            if value is None:
                continue

            self[key] = self._coerce(key, value)

    def _coerce(self, key, value):
        """Convert a string from the environment to the type of the default."""
        default = self.data[key]

        if isinstance(default, bool):
            return value.lower() in ["1", "yes", "true", "on"]

        if isinstance(default, int):
            try:
                return int(value)
            except ValueError:
                return float(value)

        return value

    def __contains__(self, key):
        """Return True if the given key exists in the environment."""
        return key in self.data

    def __getitem__(self, key):
        """Return the given environment key, or None if it does not exist."""
        return self.data.get(key)

    def __setitem__(self, key, value):
        """Set the given environment key to the given value, overriding any previous value."""
        self.data[key] = value
