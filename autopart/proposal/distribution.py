# distribution.py
# Assignment of planned partitions to the free spaces of the disks.
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

from collections import OrderedDict
from functools import cmp_to_key
import itertools

from ..devices import PartitionType
from ..errors import NoDiskSpaceError, NoMorePartitionSlotError
from ..freespace import FreeDiskSpace, Region
from ..planned import distribute_space
from ..size import Size, size_sum
from ..storage_log import log_method_call, log_method_return
from ..util import compare

import logging
log = logging.getLogger("autopart")


def _start_offset_key(volume):
    offset = getattr(volume, "max_start_offset", None)
    # volumes without a restriction go last
    return (offset is None, offset.get_bytes() if offset is not None else 0)


class AssignedSpace(object):

    """ A free space together with the planned partitions to create in it. """

    def __init__(self, disk_space, volumes):
        """
            :param disk_space: the free space
            :type disk_space: :class:`~.freespace.FreeDiskSpace`
            :param volumes: the planned partitions
            :type volumes: list of :class:`~.planned.PlannedPartition`
        """
        self.disk_space = disk_space
        self.volumes = list(volumes)
        self.num_logical = 0
        self._sort_volumes()

    def __repr__(self):
        return "<AssignedSpace disk_space=%r volumes=%s>" % (self.disk_space, self.volumes)

    @property
    def disk(self):
        return self.disk_space.disk

    @property
    def disk_name(self):
        return self.disk_space.disk_name

    @property
    def region(self):
        return self.disk_space.region

    @property
    def disk_size(self):
        return self.disk_space.disk_size

    @property
    def disklabel(self):
        return self.disk_space.disklabel

    @property
    def align_grain(self):
        return self.disk_space.align_grain

    @property
    def overhead_of_logical(self):
        """ Space lost for every logical partition (its EBR). """
        return self.align_grain

    @property
    def partition_type(self):
        """ The type of the partitions created in this space.

            None means the type depends on the rest of the distribution,
            because a new extended partition may be needed.
        """
        if not self.disklabel.extended_possible:
            return PartitionType.primary
        if self.disk.extended_partition is not None:
            if self.disk_space.inside_extended:
                return PartitionType.logical
            return PartitionType.primary
        return None

    @property
    def total_weight(self):
        return sum(v.weight for v in self.volumes)

    @property
    def usable_size(self):
        """ Size of the space minus the overhead of the logical partitions. """
        if not self.num_logical:
            return self.disk_size

        logical = self.num_logical
        if self.partition_type == PartitionType.logical:
            # the first EBR is already outside of the free space
            logical -= 1
        return self.disk_size - self.overhead_of_logical * logical

    @property
    def extra_size(self):
        return self.disk_size - size_sum((v.min for v in self.volumes), rounding=self.align_grain)

    @property
    def usable_extra_size(self):
        return self.usable_size - size_sum(v.min for v in self.volumes)

    @property
    def unused(self):
        """ Space that will stay free because every volume reached its max. """
        max_size = size_sum(v.max for v in self.volumes)
        if max_size >= self.usable_size:
            return Size(0)
        return self.usable_size - max_size

    @property
    def total_needed_size(self):
        needed = size_sum((v.min for v in self.volumes), rounding=self.align_grain)
        return needed + self.overhead_of_logical * self.num_logical

    @property
    def total_missing_size(self):
        return self.total_needed_size - self.disk_size

    @property
    def enforced_last(self):
        """ The volume that must be placed at the end of the space, if any.

            When the space is not a multiple of the grain, the volumes only
            fit if the last one can end at the unaligned end of the space.
        """
        if self.disk_space.require_end_alignment:
            return None

        rounded_up = size_sum((v.min for v in self.volumes), rounding=self.align_grain)
        usable = self.usable_size
        if usable >= rounded_up:
            return None

        missing = rounded_up - usable
        if missing >= self.align_grain:
            return None

        for volume in reversed(self.volumes):
            if volume.min.ceil(self.align_grain) - missing >= volume.min:
                return volume
        return None

    def valid(self):
        """ Whether the volumes fit into the space. """
        if not self._primary_partitions_fit():
            return False
        if self.disk_space.growing:
            return True
        if self.usable_size >= size_sum((v.min for v in self.volumes),
                                        rounding=self.align_grain):
            return True
        return self.enforced_last is not None

    def distribute(self):
        """ Return copies of the volumes sized to fill the space.

            :rtype: list of :class:`~.planned.PlannedVolume`
        """
        return distribute_space(self.volumes, self.usable_size,
                                align_grain=self.align_grain,
                                end_alignment=self.disk_space.require_end_alignment)

    def _primary_partitions_fit(self):
        if not self.num_logical:
            return True
        logical = self.volumes[-self.num_logical:]
        return not any(getattr(v, "primary", False) for v in logical)

    def _sort_volumes(self):
        self.volumes.sort(key=_start_offset_key)
        last = self.enforced_last
        if last is not None:
            self.volumes.remove(last)
            self.volumes.append(last)


class PartitionsDistribution(object):

    """ A complete assignment of planned partitions to free spaces. """

    def __init__(self, volumes_by_space):
        """
            :param volumes_by_space: the planned partitions for every space
            :type volumes_by_space: dict of :class:`~.freespace.FreeDiskSpace`
                                    to list of :class:`~.planned.PlannedPartition`
            :raises: :class:`~.errors.NoDiskSpaceError` if the assignment
                     is not possible
        """
        self.spaces = []
        self.unassigned_spaces = []
        for space, volumes in volumes_by_space.items():
            if volumes:
                self.spaces.append(self._assigned_space(space, volumes))
            else:
                self.unassigned_spaces.append(space)

        for disk_spaces in self._spaces_by_disk().values():
            self._set_num_logical_for(disk_spaces)

    def __repr__(self):
        return "<PartitionsDistribution spaces=%s>" % self.spaces

    def space_at(self, disk_space):
        return next((s for s in self.spaces if s.disk_space == disk_space), None)

    @property
    def gaps_total_size(self):
        return size_sum([s.unused for s in self.spaces] +
                        [s.disk_size for s in self.unassigned_spaces])

    @property
    def gaps_count(self):
        return len([s for s in self.spaces if s.unused > Size(0)]) + len(self.unassigned_spaces)

    @property
    def spaces_count(self):
        return len(self.spaces)

    @property
    def partitions_count(self):
        return sum(len(s.volumes) for s in self.spaces)

    @property
    def weight_space_deviation(self):
        """ How much the distribution of the extra space differs from the weights. """
        total_extra = sum(s.usable_extra_size.get_bytes() for s in self.spaces)
        total_weight = sum(s.total_weight for s in self.spaces)
        if not total_weight:
            return 0.0
        if not total_extra:
            return 1.0

        deviation = 0.0
        for space in self.spaces:
            normalized_size = float(space.usable_extra_size.get_bytes()) / total_extra
            normalized_weight = float(space.total_weight) / total_weight
            deviation += abs(normalized_size - normalized_weight)
        return deviation

    @property
    def comparable_string(self):
        strings = []
        for space in self.spaces:
            volumes = "".join(sorted(repr(v) for v in space.volumes))
            strings.append("<disk_space=%r, volumes=%s>" % (space.disk_space, volumes))
        return "".join(sorted(strings))

    def better_than(self, other):
        """ Compare two distributions, the better one is the smaller.

            :returns: a negative number if self is better than other
            :rtype: int
        """
        for criterion in ("gaps_total_size", "gaps_count", "partitions_count",
                          "weight_space_deviation", "spaces_count"):
            res = compare(getattr(self, criterion), getattr(other, criterion))
            if res:
                return res
        return compare(self.comparable_string, other.comparable_string)

    @staticmethod
    def partitions_in_new_extended(partitions, max_primary, num_primary):
        """ Number of logical partitions needed for the given partitions. """
        free_primary_slots = max_primary - num_primary
        if free_primary_slots >= partitions:
            return 0
        return partitions - free_primary_slots + 1

    def _assigned_space(self, disk_space, volumes):
        result = AssignedSpace(disk_space, volumes)
        if not result.valid():
            log.debug("invalid assigned space %s", result)
            raise NoDiskSpaceError("volumes cannot be allocated into the assigned space")
        return result

    def _spaces_by_disk(self):
        result = OrderedDict()
        for space in self.spaces:
            result.setdefault(space.disk_name, []).append(space)
        return result

    @staticmethod
    def _num_partitions(spaces):
        return sum(len(s.volumes) for s in spaces)

    def _set_num_logical(self, space, num):
        space.num_logical = num
        if not space.valid():
            log.debug("invalid assigned space %s after adjusting num_logical", space)
            raise NoDiskSpaceError("partitions cannot be allocated into the assigned space")

    def _set_num_logical_for(self, spaces):
        disk = spaces[0].disk
        disklabel = spaces[0].disklabel
        num_primary = disk.num_primary if disk.partition_table is not None else 0

        if spaces[0].partition_type is None:
            self._calculate_num_logical_for(spaces, disklabel, num_primary)
            return

        primary_spaces = [s for s in spaces if s.partition_type == PartitionType.primary]
        # an existing extended partition is already counted in num_primary
        needed_primary = num_primary + self._num_partitions(primary_spaces)
        if needed_primary > disklabel.max_primary:
            raise NoMorePartitionSlotError("too many primary partitions needed")

        for space in spaces:
            primary = space.partition_type == PartitionType.primary
            self._set_num_logical(space, 0 if primary else len(space.volumes))

    def _calculate_num_logical_for(self, spaces, disklabel, num_primary):
        if num_primary + len(spaces) > disklabel.max_primary:
            log.debug("too sparse: %d + %d > %d", num_primary, len(spaces),
                      disklabel.max_primary)
            raise NoMorePartitionSlotError("too sparse distribution")

        num_logical = self.partitions_in_new_extended(self._num_partitions(spaces),
                                                      disklabel.max_primary, num_primary)
        if not num_logical:
            for space in spaces:
                self._set_num_logical(space, 0)
            return

        candidates = [s for s in spaces if self._room_for_logical(s, num_logical)]
        if not candidates:
            raise NoDiskSpaceError("no suitable space to create the extended partition")
        # the space holding most partitions, the last one on ties
        extended_space = max(candidates, key=lambda s: (len(s.volumes), s.region.start))

        primary_spaces = [s for s in spaces if s is not extended_space]
        needed_primary = self._num_partitions(primary_spaces) + num_primary + 1
        if needed_primary > disklabel.max_primary:
            raise NoMorePartitionSlotError("too many primary partitions needed")

        self._set_num_logical(extended_space, num_logical)
        for space in primary_spaces:
            self._set_num_logical(space, 0)

    @staticmethod
    def _room_for_logical(space, num):
        return space.extra_size >= space.overhead_of_logical * num


class DistributionCalculator(object):

    """ Finds the best way to place planned partitions into free spaces. """

    def __init__(self, planned_partitions=None):
        """
            :keyword planned_partitions: the partitions to place
            :type planned_partitions: list of :class:`~.planned.PlannedPartition`
        """
        self.planned_partitions = list(planned_partitions or [])

    def best_distribution(self, spaces):
        """ The best distribution of the planned partitions into spaces.

            :param spaces: the free spaces
            :type spaces: list of :class:`~.freespace.FreeDiskSpace`
            :rtype: :class:`PartitionsDistribution`
            :raises: :class:`~.errors.NoDiskSpaceError` if there is none
        """
        log.info("calculating the best distribution for %s", self.planned_partitions)
        if self._impossible(self.planned_partitions, spaces):
            raise NoDiskSpaceError("not enough free space for the planned partitions")

        hashes = self._distribute_partitions(self.planned_partitions, spaces)
        candidates = self._distributions_from_hashes(hashes)
        if not candidates:
            raise NoDiskSpaceError("no valid distribution of the planned partitions")

        log.info("comparing %d distributions", len(candidates))
        best = min(candidates, key=cmp_to_key(lambda a, b: a.better_than(b)))
        log.info("best distribution: %s", best)
        return best

    def resizing_size(self, partition, spaces):
        """ How much a partition must be shrunk to make the volumes fit.

            :param partition: the partition to shrink
            :type partition: :class:`~.devices.PartitionDevice`
            :param spaces: the current free spaces
            :type spaces: list of :class:`~.freespace.FreeDiskSpace`
            :returns: the size to reclaim or None if it cannot be known
            :rtype: :class:`~.size.Size` or NoneType
        """
        log_method_call(self, partition=partition.name)
        disk = partition.disk
        disk_spaces = [s for s in spaces if s.disk_name == disk.name]
        volumes = [v for v in self.planned_partitions if v.disk in (None, disk.name)]
        disk_spaces = self._add_or_mark_growing_space(disk_spaces, partition)

        try:
            hashes = self._distribute_partitions(volumes, disk_spaces)
        except NoDiskSpaceError:
            return None

        size = self._missing_size_in_growing_space(hashes, disk.align_grain)
        log_method_return(self, size)
        return size

    @staticmethod
    def _needed_size(volumes, spaces, grain):
        """ Lower bound of the space taken by the volumes.

            Every volume is rounded up to the grain except the last one of
            each space, which can take the unaligned end of it.
        """
        if grain is None:
            return size_sum(v.min for v in volumes)
        roundoffs = sorted((v.min.ceil(grain) - v.min for v in volumes), reverse=True)
        rounded = size_sum((v.min for v in volumes), rounding=grain)
        return rounded - size_sum(roundoffs[:len(spaces)])

    def _impossible(self, volumes, spaces):
        grain = min((s.align_grain for s in spaces), default=None)
        needed = self._needed_size(volumes, spaces, grain)
        available = size_sum(s.disk_size for s in spaces)
        log.debug("needed: %s, available: %s", needed, available)
        if needed > available:
            return True

        pinned = OrderedDict()
        for volume in volumes:
            if volume.disk:
                pinned.setdefault(volume.disk, []).append(volume)
        for disk_name, disk_volumes in pinned.items():
            disk_spaces = [s for s in spaces if s.disk_name == disk_name]
            if not disk_spaces:
                log.debug("no free space in %s", disk_name)
                return True
            needed = self._needed_size(disk_volumes, disk_spaces, disk_spaces[0].align_grain)
            available = size_sum(s.disk_size for s in disk_spaces)
            if needed > available:
                log.debug("needed in %s: %s, available: %s", disk_name, needed, available)
                return True
        return False

    @staticmethod
    def _suitable_space(space, volume):
        if volume.disk and volume.disk != space.disk_name:
            return False
        if not space.growing and space.disk_size < volume.min:
            return False
        max_offset = getattr(volume, "max_start_offset", None)
        if max_offset is not None and space.start_offset > max_offset:
            return False
        return True

    def _distribute_partitions(self, volumes, spaces):
        """ All the possible assignments of the volumes to the spaces.

            :returns: one dict of space to volumes per assignment, every
                      space being present
            :raises: :class:`~.errors.NoDiskSpaceError` if a volume does
                     not fit anywhere
        """
        candidates = []
        for volume in volumes:
            suitable = [s for s in spaces if self._suitable_space(s, volume)]
            if not suitable:
                log.error("no suitable free space for %s", volume)
                raise NoDiskSpaceError("no suitable free space for a planned partition")
            candidates.append(suitable)

        hashes = []
        for combination in itertools.product(*candidates):
            volumes_by_space = OrderedDict((s, []) for s in spaces)
            for volume, space in zip(volumes, combination):
                volumes_by_space[space].append(volume)
            hashes.append(volumes_by_space)
        return hashes

    @staticmethod
    def _distributions_from_hashes(hashes):
        result = []
        for volumes_by_space in hashes:
            try:
                result.append(PartitionsDistribution(volumes_by_space))
            except NoDiskSpaceError:
                continue
        return result

    @staticmethod
    def _space_after(space, partition):
        disk = partition.disk
        end = partition.region.end
        return (space.disk_name == disk.name and
                end < space.region.start <= disk.align_up(end + 1) + disk.grain_blocks)

    def _add_or_mark_growing_space(self, spaces, partition):
        result = [s.as_growing() if self._space_after(s, partition) else s for s in spaces]
        if not any(s.growing for s in result):
            # an empty space right after the partition
            disk = partition.disk
            region = Region(partition.region.end + 1, 0, disk.block_size)
            result.append(FreeDiskSpace(disk, region, disk.partition_table,
                                        inside_extended=partition.is_logical,
                                        growing=True, exists=False))
        return result

    def _missing_size_in_growing_space(self, hashes, align_grain):
        alternatives = OrderedDict()
        for volumes_by_space in hashes:
            growing = next(s for s in volumes_by_space if s.growing)
            key = tuple(volumes_by_space[growing])
            alternatives.setdefault(key, []).append(volumes_by_space)

        def sort_key(volumes):
            return (size_sum((v.min for v in volumes), rounding=align_grain).get_bytes(),
                    [v.id for v in volumes])

        for volumes in sorted(alternatives, key=sort_key):
            distributions = self._distributions_from_hashes(alternatives[volumes])
            if not distributions:
                continue

            assigned = [next((s for s in d.spaces if s.disk_space.growing), None)
                        for d in distributions]
            if None in assigned:
                return Size(0)

            missing = min(s.total_missing_size for s in assigned)
            if missing <= Size(0):
                return Size(0)
            return missing.ceil(align_grain)

        return None
