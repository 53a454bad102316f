""" Log destinations for cibtxn """

__all__ = ["LogFactory"]
__copyright__ = "Copyright 2014-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

import os
import sys
import time


class Logger:
    """ A place log lines are sent to """

    TimeFormat = "%b %d %H:%M:%S\t"

    def __init__(self, tag=None, debug=True):
        """ Create a new Logger instance

            Arguments:

            tag   -- Put in front of every line, if given
            debug -- Whether debug lines are sent here too
        """

        self.is_debug_target = debug
        self._source = "%s: " % tag if tag else ""

    def prefix(self):
        """ The timestamp and tag to start a line with """

        return "%s%s" % (time.strftime(Logger.TimeFormat), self._source)

    def __call__(self, line):
        raise NotImplementedError


class StdErrLog(Logger):
    """ Log to our own standard error """

    def __call__(self, line):
        print("%s%s" % (self.prefix(), line), file=sys.__stderr__, flush=True)


class FileLog(Logger):
    """ Append to a file, adding the host name to every line """

    def __init__(self, filename, tag=None, debug=True):
        Logger.__init__(self, tag, debug)
        self._filename = filename
        self._hostname = os.uname()[1]

    def __call__(self, line):
        with open(self._filename, "at", encoding="utf-8") as logf:
            print("%s%s %s%s" % (time.strftime(Logger.TimeFormat), self._hostname, self._source, line),
                  file=logf)


class LogFactory:
    """ Singleton sending messages to every configured destination

        Every instance shares the same destinations, so modules can each
        create their own and still log to wherever the program set up.
    """

    log_methods = []
    have_stderr = False

    def add_file(self, filename, tag=None, debug=True):
        """ Also log to filename """

        if filename:
            LogFactory.log_methods.append(FileLog(filename, tag, debug))

    def add_stderr(self, debug=False):
        """ Also log to standard error, at most once """

        if not LogFactory.have_stderr:
            LogFactory.have_stderr = True
            LogFactory.log_methods.append(StdErrLog(debug=debug))

    def reset(self):
        """ Forget every destination """

        LogFactory.log_methods = []
        LogFactory.have_stderr = False

    def _emit(self, line, debug=False):
        for logfn in LogFactory.log_methods:
            if logfn.is_debug_target or not debug:
                logfn(line)

    def log(self, args):
        """ Log a message """

        self._emit(args.strip())

    def debug(self, args):
        """ Log a message only to the destinations that want debug output """

        self._emit("debug: %s" % args.strip(), debug=True)

    def warning(self, args):
        """ Log a warning """

        self._emit("warning: %s" % args.strip())
