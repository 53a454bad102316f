"""A module for updating cluster resources only when the cluster would notice."""

__all__ = ["LocationRule", "ResourceSpec", "ResourceState", "ResourceUpdater"]
__copyright__ = "Copyright 2025-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

from enum import IntEnum, unique

from cibtxn.commands import split
from cibtxn.diff import DiffEngine
from cibtxn.exceptions import OfflineCommandError
from cibtxn.logging import LogFactory
from cibtxn.timer import Timer
from cibtxn.transaction import CibTransaction


@unique
class ResourceState(IntEnum):
    """How a resource on the cluster compares to its wanted definition."""

    NO_CHANGE_NEEDED = 0
    NOT_EXISTS       = 1
    CHANGE_NEEDED    = 2


class LocationRule:
    """A rule based location constraint, as accepted by "pcs constraint location ... rule"."""

    def __init__(self, expression=None, score=None, score_attribute=None, resource_discovery=None):
        """
        Create a new LocationRule instance.

        Arguments:
        expression         -- The rule expression, as a list of strings
        score              -- The score given when the rule matches
        score_attribute    -- A node attribute to take the score from instead
        resource_discovery -- "always", "never" or "exclusive"
        """
        self.expression = list(expression or [])
        self.score = score
        self.score_attribute = score_attribute
        self.resource_discovery = resource_discovery

    @classmethod
    def from_dict(cls, rule):
        """Create a LocationRule from a mapping with the same keys as the arguments."""
        expression = rule.get("expression") or []
        if isinstance(expression, str):
            expression = [expression]

        return cls(expression=expression,
                   score=rule.get("score"),
                   score_attribute=rule.get("score_attribute"),
                   resource_discovery=rule.get("resource_discovery"))


class ResourceSpec:
    """
    What a single cluster resource should look like.

    Treat instances as read-only once a transaction has started with them.
    The retry settings default to None, meaning the Environment's values
    are used.
    """

    def __init__(self, name, create_command=None, location_rule=None, composite=False,
                 bundle=None, clone=False, master=False,
                 tries=None, try_sleep=None, post_success_sleep=None):
        """
        Create a new ResourceSpec instance.

        Arguments:
        name               -- The resource id
        create_command     -- The pcs arguments that create the resource
        location_rule      -- A LocationRule (or a mapping) placing the resource
        composite          -- The resource is itself a bundle, so the cluster
                              schedules it as name-0, name-1 and so on
        bundle             -- The bundle this resource runs inside, if any
        clone              -- The resource is cloned
        master             -- The resource is a promotable (master/slave) clone
        tries              -- How many times to try pushing a change
        try_sleep          -- Seconds to sleep between tries
        post_success_sleep -- Seconds to sleep after a successful push
        """
        if isinstance(location_rule, dict):
            location_rule = LocationRule.from_dict(location_rule)

        self.name = name
        self.create_command = create_command
        self.location_rule = location_rule
        self.composite = composite
        self.bundle = bundle
        self.clone = clone
        self.master = master
        self.tries = tries
        self.try_sleep = try_sleep
        self.post_success_sleep = post_success_sleep

    def __repr__(self):
        return "ResourceSpec(%r)" % self.name

    @property
    def location_target(self):
        """
        The id a location constraint for this resource has to name.

        pcs wraps clones as <name>-clone and promotable clones as <name>-master,
        and a resource inside a bundle is placed through the bundle.
        """
        if self.bundle:
            return self.bundle

        if self.clone:
            return "%s-clone" % self.name

        if self.master:
            return "%s-master" % self.name

        return self.name


class ResourceUpdater:
    """
    Replaces resource definitions in the CIB, but only when that matters.

    Deleting a resource and creating it again from its wanted definition, in
    a snapshot of the CIB, gives a CIB that differs from the live one only
    where the definition changed.  A DiffEngine then tells us whether the
    cluster would restart or move the resource because of it.
    """

    def __init__(self, transaction=None, diff_engine=None, env=None, logger=None):
        """
        Create a new ResourceUpdater instance.

        Arguments:
        transaction -- The CibTransaction to run everything through
        diff_engine -- A DiffEngine.  If None, crm_diff is probed the first
                       time one is needed and the engine is kept from then on.
        env         -- An Environment instance, used if transaction is None
        logger      -- A LogFactory instance, used if transaction is None
        """
        if transaction is None:
            transaction = CibTransaction(env=env, logger=logger or LogFactory())

        self._txn = transaction
        self._diff_engine = diff_engine

    @property
    def diff_engine(self):
        if self._diff_engine is None:
            self._diff_engine = DiffEngine.detect(self._txn.runner, env=self._txn.env,
                                                  logger=self._txn.logger)

        return self._diff_engine

    def _create_command(self, spec, create_command):
        if create_command is None:
            create_command = spec.create_command

        if create_command is None:
            raise ValueError("No creation command given for resource %s" % spec.name)

        return split(create_command)

    def _recreate(self, spec, cib, create_command, caller):
        """Delete and recreate a resource in a snapshot."""
        for args in [self._txn.commands.resource_delete(spec.name), create_command]:
            result = self._txn.offline(args, cib)

            if not result.success:
                raise OfflineCommandError("%s %s returned error on %s. This should never happen."
                                          % (caller, " ".join(args), spec.name), result)

    def location_rule_command(self, spec, force=False):
        """Return the pcs arguments creating the ResourceSpec's location rule, or None if it has none."""
        if spec.location_rule is None:
            return None

        cmd = self._txn.commands.location_rule(spec.location_target, spec.location_rule, force)
        self._txn.logger.debug("build_pcs_location_rule_cmd: %s" % " ".join(cmd))
        return cmd

    def has_changed(self, spec, create_command=None):
        """
        Return a ChangeDecision telling whether recreating the resource would make the cluster act.

        The live cluster is not touched.  Errors from the tools are raised only
        after the snapshot has been deleted.
        """
        create_command = self._create_command(spec, create_command)

        with self._txn.snapshot() as cib:
            self._recreate(spec, cib, create_command, "pcmk_resource_has_changed")
            decision = self.diff_engine.would_cluster_act(spec.name, cib.orig_path, cib.path,
                                                          spec.composite)

        self._txn.logger.debug("pcmk_resource_has_changed (%s) returned %s for resource %s"
                               % (decision.strategy, decision.changed, spec.name))
        return decision

    def exists(self, spec):
        """Return True if the live cluster knows about the resource."""
        result = self._txn.runner.run(self._txn.commands.pcs(self._txn.commands.resource_show(spec.name)),
                                      merge_stderr=True)
        return result.success

    def state(self, spec, create_command=None):
        """Return the ResourceState of the resource on the live cluster."""
        if not self.exists(spec):
            return ResourceState.NOT_EXISTS

        if self.has_changed(spec, create_command):
            return ResourceState.CHANGE_NEEDED

        return ResourceState.NO_CHANGE_NEEDED

    def wait_for_settle(self, name, timeout):
        """
        Wait up to timeout seconds for the cluster to finish acting on a change.

        By the time this runs the change has been pushed, so a failure here is
        only logged.  Returns the CommandResult of crm_resource --wait.
        """
        with Timer(self._txn.logger, name, "settle"):
            result = self._txn.runner.run(self._txn.commands.crm_resource_wait(), merge_stderr=True,
                                          timeout=timeout)

        if result.timed_out:
            self._txn.logger.warning("cluster did not settle within %ss after updating %s" % (timeout, name))
        elif not result.success:
            self._txn.logger.warning("%s failed after updating %s: %s" % (result.command_line, name, result.first_line))

        self._txn.logger.debug("pcmk_update_resource: %s returned (%d): %s"
                               % (result.command_line, result.returncode, result.output))
        return result

    def update(self, spec, create_command=None, settle_timeout=None):
        """
        Replace the resource's definition on the cluster.

        The resource is deleted and recreated in a snapshot, along with its
        location rule, if any.  Some versions of pcs don't remove the location
        rule of a bundle when deleting it, so the rule is created with --force
        to cope with it still being there.  The snapshot is then pushed with
        the ResourceSpec's retry settings, and we wait up to settle_timeout seconds for
        the cluster to settle before the snapshot is deleted.
        """
        create_command = self._create_command(spec, create_command)

        if settle_timeout is None:
            settle_timeout = self._txn.env["SettleTimeout"]

        mutations = [self._txn.commands.resource_delete(spec.name), create_command]

        location_cmd = self.location_rule_command(spec, force=True)
        if location_cmd is not None:
            mutations.append(location_cmd)

        return self._txn.commit(mutations, spec.tries, spec.try_sleep, spec.post_success_sleep,
                                label="pcmk_update_resource %s" % spec.name,
                                on_success=lambda cib: self.wait_for_settle(spec.name, settle_timeout))
