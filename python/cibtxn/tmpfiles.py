""" Temporary CIB files and their cleanup """

__all__ = ["BACKUP_PREFIX", "SIMULATE_PREFIX", "CibSnapshot", "release",
           "scratch_file", "snapshot", "tmpname"]
__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

from contextlib import contextmanager, suppress
import hashlib
import os
import random
import shutil
import time

from cibtxn.buildoptions import BuildOptions

BACKUP_PREFIX = "cib-backup"
SIMULATE_PREFIX = "cib-simulate"

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number):
    if number == 0:
        return "0"

    digits = ""
    while number:
        (number, rem) = divmod(number, 36)
        digits = _DIGITS[rem] + digits

    return digits


def tmpname(prefix, suffix=None, n=None, base_dir=None):
    """ Return a new temporary file name under base_dir

        The name looks like <prefix><YYYYMMDD>-<pid>-<random>[-n][suffix].  The
        date and pid keep names from different runs and processes apart, and
        the random part keeps names within one process apart.  Nothing is
        created on disk.

        The default base_dir is the CIB directory, because its permissions
        already keep everyone but root and the cluster user out.
    """

    if base_dir is None:
        base_dir = BuildOptions.CIB_DIR

    name = "%s%s-%d-%s" % (prefix, time.strftime("%Y%m%d"), os.getpid(),
                           _base36(random.getrandbits(32)))

    if n is not None:
        name += "-%s" % n

    if suffix:
        name += suffix

    return os.path.join(base_dir, name)


def _remove(path):
    with suppress(FileNotFoundError):
        os.remove(path)


def release(path):
    """ Delete a CIB snapshot and its .orig copy.  Missing files are fine. """

    _remove(path)
    _remove("%s.orig" % path)


def _file_digest(path):
    sha = hashlib.sha256()

    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            sha.update(chunk)

    return sha.hexdigest()


class CibSnapshot:
    """ A copy of the CIB taken at one moment, plus an untouched duplicate of
        it (the .orig file) to compare against after the copy has been edited
    """

    def __init__(self, path):
        self.path = path
        self.orig_path = "%s.orig" % path
        self._released = False

    def __str__(self):
        return self.path

    def __repr__(self):
        return "CibSnapshot(%r)" % self.path

    def __fspath__(self):
        return self.path

    def digest(self):
        return _file_digest(self.path)

    def orig_digest(self):
        return _file_digest(self.orig_path)

    def unchanged(self):
        """ Return True if the snapshot is byte for byte identical to its .orig copy """

        return self.digest() == self.orig_digest()

    @property
    def released(self):
        return self._released

    def release(self):
        """ Delete both files.  Only the first call does anything. """

        if self._released:
            return

        self._released = True
        release(self.path)


@contextmanager
def snapshot(exporter, prefix=BACKUP_PREFIX, base_dir=None):
    """ Take a CibSnapshot that only lives as long as the with block

        exporter is called with the new file name and must write the CIB there,
        raising an exception if it can't.  Once it returns, the .orig copy is
        made.  Both files are deleted when the block exits, however it exits,
        and also if exporter raises.
    """

    cib = CibSnapshot(tmpname(prefix, base_dir=base_dir))

    try:
        exporter(cib.path)
        shutil.copyfile(cib.path, cib.orig_path)
        yield cib
    finally:
        cib.release()


@contextmanager
def scratch_file(prefix, base_dir=None):
    """ Yield a temporary file name that is removed when the with block exits """

    path = tmpname(prefix, base_dir=base_dir)

    try:
        yield path
    finally:
        _remove(path)
