# guided.py
# The guided storage proposal.
#
# Copyright (C) 2009-2015  Red Hat, Inc.
#
# This copyrighted material is made available to anyone wishing to use,
# modify, copy, or redistribute it subject to the terms and conditions of
# the GNU General Public License v.2, or (at your option) any later version.
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY expressed or implied, including the implied warranties of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General
# Public License for more details.  You should have received a copy of the
# GNU General Public License along with this program; if not, write to the
# Free Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA
# 02110-1301, USA.  Any Red Hat trademarks that are incorporated in the
# source code or documentation are not subject to the GNU General Public
# License and may only be used or replicated with the express permission of
# Red Hat, Inc.
#

from collections import namedtuple

from ..diskanalyzer import DiskAnalyzer
from ..errors import ProposalError, DeviceError, NoDiskSpaceError
from ..errors import UnexpectedCallError, ProposalCancelledError
from ..i18n import _
from ..planned import Target
from ..platform import get_platform
from ..settings import ProposalSettings
from ..storage_log import log_method_call, log_exception_info
from ..util import dedup_list
from .generator import DevicegraphGenerator
from .settingsgenerator import SettingsGenerator
from .spacemaker import SpaceMaker
from .volumesgenerator import VolumesGenerator

import logging
log = logging.getLogger("autopart")

_AttemptResult = namedtuple("AttemptResult", ["settings", "target", "root_disk",
                                              "devicegraph", "planned_devices", "error"])


class AttemptResult(_AttemptResult):

    """ The outcome of one attempt: a device graph or the error that stopped it. """

    __slots__ = ()

    @property
    def succeeded(self):
        return self.error is None


TARGETS = (Target.desired, Target.min)


class GuidedProposal(object):

    """ A storage proposal for installing the system.

        A proposal is calculated once with :meth:`propose`. Every attempt
        works on its own copy of the initial device graph, which is never
        modified.

        Attempts are made for each size target and each possible root
        disk. The first successful attempt provides the result. When all
        of them fail, the error of the last one is raised.
    """

    def __init__(self, devicegraph, settings=None, platform=None, disk_analyzer=None):
        """
            :param devicegraph: the starting point
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :keyword settings: the settings, the defaults if None
            :type settings: :class:`~.settings.ProposalSettings`
            :keyword platform: the platform, x86 if None
            :type platform: :class:`~.platform.Platform`
            :keyword disk_analyzer: analyzer of devicegraph
            :type disk_analyzer: :class:`~.diskanalyzer.DiskAnalyzer`
        """
        self.initial_devicegraph = devicegraph
        self.settings = settings or ProposalSettings.defaults()
        self.platform = platform or get_platform()
        self.disk_analyzer = disk_analyzer or DiskAnalyzer(devicegraph, self.platform)

        self.devices = None
        self.planned_devices = None
        self.error = None
        self._proposed = False
        self._space_maker = None
        self._clean_graph = None
        self._candidates = None

    def __str__(self):
        state = "not proposed"
        if self._proposed:
            state = "failed" if self.failed else "proposed"
        return "%s (%s)" % (self.__class__.__name__, state)

    @classmethod
    def initial(cls, devicegraph, settings=None, platform=None, disk_analyzer=None):
        """ Calculate the proposal offered before the user changes anything.

            Unlike :meth:`propose`, a failure does not raise. The returned
            proposal tells whether it :attr:`failed`.

            :rtype: :class:`InitialGuidedProposal`
        """
        proposal = InitialGuidedProposal(devicegraph, settings=settings, platform=platform,
                                         disk_analyzer=disk_analyzer)
        try:
            proposal.propose()
        except (ProposalError, DeviceError) as e:
            log.error("initial proposal failed: %s", e)
        return proposal

    @property
    def proposed(self):
        """ Whether :meth:`propose` has been called. """
        return self._proposed

    @property
    def failed(self):
        return self._proposed and self.devices is None

    def propose(self, cancel=None):
        """ Calculate the proposal.

            :keyword cancel: checked between attempts, the calculation
                             stops when it is set
            :type cancel: :class:`threading.Event` or anything with is_set()
            :returns: the proposed device graph
            :rtype: :class:`~.devicegraph.DeviceGraph`
            :raises: :class:`~.errors.UnexpectedCallError` if called twice,
                     :class:`~.errors.ProposalCancelledError`, the error of
                     the last attempt if none succeeds
        """
        log_method_call(self, cancel=cancel)
        if self._proposed:
            raise UnexpectedCallError("the proposal has already been calculated")
        self._proposed = True

        last = None
        for attempt in self.attempts(cancel=cancel):
            last = attempt
            if attempt.succeeded:
                self.settings = attempt.settings
                self.planned_devices = attempt.planned_devices
                self.devices = attempt.devicegraph
                log.info("proposal succeeded with target %s and root disk %s",
                         attempt.target.value, attempt.root_disk)
                return self.devices

        if last is None:
            self.error = NoDiskSpaceError(_("No usable disks detected."))
        else:
            self.error = last.error
        log.error("proposal failed: %s", self.error)
        raise self.error

    def attempts(self, cancel=None):
        """ Generate the attempts of the proposal, one at a time.

            :rtype: iterator of :class:`AttemptResult`
        """
        return self._attempts_for(self.settings, cancel)

    def _attempts_for(self, settings, cancel):
        settings = self._complete_settings(settings)
        for target in TARGETS:
            for root_disk in self._root_disks(settings):
                if cancel is not None and cancel.is_set():
                    raise ProposalCancelledError("the proposal has been cancelled")
                yield self._attempt(settings, target, root_disk)

    def _attempt(self, settings, target, root_disk):
        log.info("attempt with target %s and root disk %s", target.value, root_disk)
        log.info("%s", settings)
        planned = None
        try:
            clean_graph = self._clean_graph_for(settings)
            generator = VolumesGenerator(settings, clean_graph, self.platform,
                                         DiskAnalyzer(clean_graph, self.platform))
            planned = generator.planned_devices(target, root_disk=root_disk)
            graph = DevicegraphGenerator(settings).devicegraph(planned, clean_graph,
                                                               self._space_maker, target=target)
        except (ProposalError, DeviceError) as e:
            log_exception_info(log.info, "attempt with target %s failed",
                               [target.value])
            return AttemptResult(settings, target, root_disk, None, planned, e)

        return AttemptResult(settings, target, root_disk, graph, planned, None)

    #
    # candidate disks
    #
    def candidate_disk_names(self):
        """ Names of the disks to install on, USB disks last. """
        if self.settings.candidate_devices:
            return list(self.settings.candidate_devices)

        candidates = self.disk_analyzer.candidate_disks
        candidates = [d for d in candidates if not d.usb] + [d for d in candidates if d.usb]
        return [d.name for d in candidates]

    def _complete_settings(self, settings):
        if settings.candidate_devices:
            return settings
        return settings.copy(candidate_devices=self.candidate_disk_names())

    def _root_disks(self, settings):
        """ The disks to try for the root volume, biggest first. """
        if settings.root_device:
            return [settings.root_device]

        disks = [self.initial_devicegraph.get_device_by_name(n)
                 for n in settings.candidate_devices]
        disks = [d for d in disks if d is not None]
        disks.sort(key=lambda d: (-d.size.get_bytes(), d.name))
        return [d.name for d in disks]

    #
    # graph preparation
    #
    def _clean_graph_for(self, settings):
        """ The initial graph without the partitions that must go.

            Candidate disks with an empty partition table lose it, so the
            preferred type can be used.
        """
        if self._candidates != settings.candidate_devices:
            # the space maker and the clean graph belong to one set of disks
            self._candidates = settings.candidate_devices
            self._space_maker = None
            self._clean_graph = None

        if self._space_maker is None:
            self._space_maker = SpaceMaker(self.disk_analyzer, settings, self.platform)
        self._space_maker.settings = settings

        if self._clean_graph is None:
            graph = self.initial_devicegraph.copy()
            self._remove_empty_partition_tables(graph, settings.candidate_devices)
            self._clean_graph = self._space_maker.delete_unwanted_partitions(graph)
        return self._clean_graph

    @staticmethod
    def _remove_empty_partition_tables(devicegraph, disk_names):
        for name in disk_names:
            disk = devicegraph.get_device_by_name(name)
            if disk is None or disk.partition_table is None or disk.partitions:
                continue
            log.info("removing the empty partition table of %s", name)
            devicegraph.remove_partition_table(disk)


class InitialGuidedProposal(GuidedProposal):

    """ The proposal offered before the user adjusts any setting.

        Each candidate disk is tried alone before all of them together.
        For every group of disks the settings are degraded step by step
        with a :class:`~.settingsgenerator.SettingsGenerator` until a
        proposal is possible.
    """

    def attempts(self, cancel=None):
        for group in self.candidate_groups():
            root_device = self.settings.root_device
            if root_device not in group:
                root_device = None
            settings = self.settings.copy(candidate_devices=group, root_device=root_device)

            log.info("trying candidate disks %s", group)
            generator = SettingsGenerator(settings)
            for adjusted in generator:
                if generator.adjustments:
                    log.info("adjustments: %s", generator.adjustments)
                for attempt in self._attempts_for(adjusted, cancel):
                    yield attempt

    def candidate_groups(self):
        """ Each candidate disk alone, then all of them. """
        candidates = self.candidate_disk_names()
        groups = [(name,) for name in candidates] + [tuple(candidates)]
        return [list(g) for g in dedup_list(groups) if g]
