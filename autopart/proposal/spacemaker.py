# spacemaker.py
# Freeing of disk space for the storage proposal.
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
from enum import Enum

from ..devices import Tags
from ..diskanalyzer import DiskAnalyzer, PartitionCategory
from ..errors import NoDiskSpaceError, DeviceResizeError
from ..settings import DeleteMode
from ..size import Size
from ..storage_log import log_method_call, log_exception_info
from .distribution import DistributionCalculator

import logging
log = logging.getLogger("autopart")

SpaceMakerResult = namedtuple("SpaceMakerResult",
                              ["devicegraph", "distribution", "deleted_partitions"])


class ActionType(str, Enum):
    resize = 'resize'
    delete = 'delete'
    wipe = 'wipe'


class SpaceAction(object):

    """ One step the space maker can take to reclaim space. """

    def __init__(self, action_type, device_name, reclaimable):
        self.type = ActionType(action_type)
        self.device_name = device_name
        self.reclaimable = reclaimable

    def __repr__(self):
        return "<SpaceAction %s %s reclaimable=%s>" % (self.type.value, self.device_name,
                                                       self.reclaimable)

    @property
    def key(self):
        return (self.type, self.device_name)


def _by_reclaimable(actions):
    """ Sort actions, biggest gain first and then by name. """
    return sorted(actions, key=lambda a: (-a.reclaimable.get_bytes(), a.device_name))


class PartitionKiller(object):

    """ Deletes partitions together with the ones that become useless.

        The extended partition goes away with its last logical partition.
        Deleting a physical volume of a volume group deletes every other
        physical volume of that group located on the given disks.
    """

    def __init__(self, devicegraph, disks=None):
        """
            :param devicegraph: the graph to delete partitions from
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :keyword disks: names of the disks collateral deletions are
                            restricted to (default: all)
            :type disks: list of str
        """
        self.devicegraph = devicegraph
        self.disks = disks

    def delete(self, name):
        """ Delete a partition.

            :param str name: the name of the partition
            :returns: the names of all the removed devices
            :rtype: list of str
        """
        partition = self.devicegraph.get_device_by_name(name)
        if partition is None or Tags.partition not in partition.tags:
            return []

        vg = self._volume_group(partition)
        if vg is not None:
            return self._delete_lvm_partitions(vg)
        return self._delete_partition(partition)

    def _delete_partition(self, partition):
        log.info("deleting partition %s", partition.name)
        disk = partition.disk
        if partition.is_logical and len(disk.logical_partitions) == 1:
            log.info("%s is the last logical partition, deleting the extended one",
                     partition.name)
            return self.devicegraph.delete_partition(disk.extended_partition)
        return self.devicegraph.delete_partition(partition)

    def _volume_group(self, partition):
        return next((d for d in self.devicegraph.descendants(partition)
                     if Tags.lvm_vg in d.tags), None)

    def _delete_lvm_partitions(self, vg):
        partitions = []
        for pv in vg.pvs:
            device = pv
            while Tags.partition not in device.tags and device.parents:
                device = device.parents[0]
            if Tags.partition not in device.tags:
                continue
            if self.disks is not None and device.disk.name not in self.disks:
                continue
            partitions.append(device.name)

        log.info("deleting the partitions of volume group %s: %s", vg.name, partitions)
        removed = []
        for name in partitions:
            partition = self.devicegraph.get_device_by_name(name)
            if partition is not None:
                removed.extend(self._delete_partition(partition))
        return removed


class SpaceMaker(object):

    """ Frees space for the planned partitions of a proposal attempt.

        Space is obtained by resizing Windows partitions and by deleting
        partitions, following the delete modes of the settings. Only the
        candidate disks are touched and the space maker stops as soon as
        the planned partitions fit.
    """

    def __init__(self, disk_analyzer, settings, platform):
        """
            :param disk_analyzer: analyzer of the initial device graph
            :type disk_analyzer: :class:`~.diskanalyzer.DiskAnalyzer`
            :param settings: the settings of the attempt
            :type settings: :class:`~.settings.ProposalSettings`
            :param platform: the platform of the system
            :type platform: :class:`~.platform.Platform`
        """
        self.disk_analyzer = disk_analyzer
        self.settings = settings
        self.platform = platform
        self.deleted_partitions = []

    @property
    def candidate_disk_names(self):
        if self.settings.candidate_devices:
            return list(self.settings.candidate_devices)
        return [d.name for d in self.disk_analyzer.candidate_disks]

    def delete_unwanted_partitions(self, devicegraph):
        """ Delete the partitions that must go regardless of the space needed.

            Those are the partitions of the categories whose delete mode is
            :attr:`~.settings.DeleteMode.ALL`.

            :param devicegraph: the initial graph, left untouched
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :returns: a new graph without the unwanted partitions
            :rtype: :class:`~.devicegraph.DeviceGraph`
        """
        log_method_call(self, candidates=self.candidate_disk_names)
        new_graph = devicegraph.copy()
        killer = PartitionKiller(new_graph, self.candidate_disk_names)
        analyzer = DiskAnalyzer(new_graph, self.platform)

        for category in PartitionCategory:
            if self.settings.delete_mode(category) != DeleteMode.ALL:
                continue
            for name in self._partition_names(analyzer, category):
                removed = killer.delete(name)
                self._remember_deleted(devicegraph, removed, self.deleted_partitions)

        return new_graph

    def provide_space(self, devicegraph, planned_partitions):
        """ Make space for the planned partitions.

            :param devicegraph: the graph to start from, left untouched
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :param planned_partitions: the partitions to make space for
            :type planned_partitions: list of :class:`~.planned.PlannedPartition`
            :returns: the new graph, the distribution of the partitions into
                      its free spaces and the partitions deleted so far
            :rtype: :class:`SpaceMakerResult`
            :raises: :class:`~.errors.NoDiskSpaceError` if the partitions
                     do not fit even after all the permitted actions
        """
        keep = [p.reuse for p in planned_partitions if p.reuse]
        partitions = [p for p in planned_partitions if not p.reuse]
        for planned in planned_partitions:
            if planned.reuse:
                log.info("no space needed for %s, it reuses %s", planned.mount_point,
                         planned.reuse)

        new_graph = devicegraph.copy()
        calculator = DistributionCalculator(partitions)
        disk_names = self._disk_names(partitions)
        done = set()
        deleted = list(self.deleted_partitions)

        distribution = self._find_distribution(calculator, new_graph, disk_names)
        while distribution is None:
            action = self._next_action(new_graph, keep, done)
            if action is None:
                log.info("no more actions to make space")
                raise NoDiskSpaceError("not enough space for the planned partitions")

            done.add(action.key)
            removed = self._execute(action, new_graph, calculator, disk_names)
            self._remember_deleted(devicegraph, removed, deleted)
            distribution = self._find_distribution(calculator, new_graph, disk_names)

        return SpaceMakerResult(new_graph, distribution, deleted)

    def _disk_names(self, planned_partitions):
        names = self.candidate_disk_names
        # disks explicitly requested by a planned partition count as candidates
        for planned in planned_partitions:
            if planned.disk and planned.disk not in names:
                names.append(planned.disk)
        return names

    @staticmethod
    def _remember_deleted(devicegraph, removed, deleted):
        for name in removed:
            device = devicegraph.get_device_by_name(name)
            if device is None or Tags.partition not in device.tags:
                continue
            if name not in [p.name for p in deleted]:
                deleted.append(device)

    def free_spaces(self, devicegraph, disk_names):
        """ The free spaces of the given disks.

            Disks without a partition table are considered as having a
            new one of their preferred type.
        """
        spaces = []
        for name in disk_names:
            disk = devicegraph.get_device_by_name(name)
            if disk is None:
                continue
            label_type = self.platform.best_disklabel_type(disk)
            spaces.extend(disk.free_spaces(label_type=label_type))
        return spaces

    def _find_distribution(self, calculator, devicegraph, disk_names):
        spaces = self.free_spaces(devicegraph, disk_names)
        try:
            return calculator.best_distribution(spaces)
        except NoDiskSpaceError as e:
            log.info("no distribution yet: %s", e)
            return None

    #
    # actions
    #
    def _partition_names(self, analyzer, category, keep=None):
        keep = keep or []
        disks = [d for d in self.candidate_disk_names
                 if analyzer.devicegraph.get_device_by_name(d) is not None]
        if not disks:
            return []
        getter = {PartitionCategory.windows: analyzer.windows_partitions,
                  PartitionCategory.linux: analyzer.linux_partitions,
                  PartitionCategory.other: analyzer.other_partitions}[category]
        return [p.name for p in getter(*disks) if p.name not in keep]

    def _protected(self, devicegraph, partition, keep):
        if partition.name in keep:
            return True
        # the space of a reused device cannot be reclaimed either
        return any(d.name in keep for d in devicegraph.descendants(partition))

    def _candidate_actions(self, devicegraph, keep):
        analyzer = DiskAnalyzer(devicegraph, self.platform)

        def partitions(category):
            if self.settings.delete_mode(category) == DeleteMode.NONE:
                return []
            result = []
            for name in self._partition_names(analyzer, category, keep):
                partition = devicegraph.find_device(name)
                if not self._protected(devicegraph, partition, keep):
                    result.append(partition)
            return result

        windows = partitions(PartitionCategory.windows)
        actions = []

        if self.settings.resize_windows and \
           self.settings.windows_delete_mode == DeleteMode.ONDEMAND:
            actions.extend(_by_reclaimable(SpaceAction(ActionType.resize, p.name,
                                                       p.recoverable_size)
                                           for p in windows if p.recoverable_size > Size(0)))

        for category in (PartitionCategory.linux, PartitionCategory.other):
            actions.extend(_by_reclaimable(SpaceAction(ActionType.delete, p.name, p.size)
                                           for p in partitions(category)))

        if self.settings.other_delete_mode != DeleteMode.NONE:
            actions.extend(_by_reclaimable(SpaceAction(ActionType.wipe, d.name, d.size)
                                           for d in self._wipeable_disks(devicegraph, keep)))

        actions.extend(_by_reclaimable(SpaceAction(ActionType.delete, p.name, p.size)
                                       for p in windows))
        return actions

    def _wipeable_disks(self, devicegraph, keep):
        """ Candidate disks formatted as a whole. """
        result = []
        for name in self.candidate_disk_names:
            disk = devicegraph.get_device_by_name(name)
            if disk is None or name in keep:
                continue
            if disk.formatted and disk.partition_table is None:
                result.append(disk)
        return result

    def _next_action(self, devicegraph, keep, done):
        actions = [a for a in self._candidate_actions(devicegraph, keep) if a.key not in done]
        log.debug("candidate actions: %s", actions)
        return actions[0] if actions else None

    def _execute(self, action, devicegraph, calculator, disk_names):
        log.info("executing %s", action)
        if action.type == ActionType.resize:
            self._resize(action, devicegraph, calculator, disk_names)
            return []
        if action.type == ActionType.wipe:
            return devicegraph.wipe_device(devicegraph.find_device(action.device_name))
        killer = PartitionKiller(devicegraph, self.candidate_disk_names)
        return killer.delete(action.device_name)

    def _resize(self, action, devicegraph, calculator, disk_names):
        partition = devicegraph.find_device(action.device_name)
        spaces = self.free_spaces(devicegraph, disk_names)
        shrink_size = calculator.resizing_size(partition, spaces)
        if shrink_size is None or shrink_size > partition.recoverable_size:
            shrink_size = partition.recoverable_size
        if shrink_size <= Size(0):
            log.info("shrinking %s would not help", partition.name)
            return

        try:
            new_size = devicegraph.resize_partition(partition, partition.size - shrink_size)
        except DeviceResizeError:
            log_exception_info(log.info, "cannot shrink %s by %s",
                               [partition.name, shrink_size])
            return
        log.info("shrunk %s to %s", partition.name, new_size)
