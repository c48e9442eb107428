# planned.py
# Devices the storage proposal plans to create.
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

import copy
from decimal import Decimal
from enum import Enum

from .devices import PartitionId
from .errors import NoDiskSpaceError
from .size import Size, UNLIMITED, size_sum
from .util import ObjectID

import logging
log = logging.getLogger("autopart")

# partitions that must stay outside of LVM
NON_LVM_PARTITION_IDS = (PartitionId.esp, PartitionId.bios_boot, PartitionId.prep)


class Target(str, Enum):
    """Which size of the planned volumes an attempt tries to satisfy."""
    desired = 'desired'
    min = 'min'


class PlannedVolume(ObjectID):

    """ A volume the proposal wants to create (or to reuse).

        The size requested for the volume depends on the target of the
        attempt, see :meth:`min_valid_disk_size`. The size the volume will
        actually get is stored in :attr:`disk_size` by
        :func:`distribute_space`, which works on copies.
    """

    def __init__(self, mount_point=None, fs_type=None, min_size=None,
                 desired_size=None, max_size=None, weight=0, disk=None,
                 label=None, uuid=None, reuse=None, encryption_password=None,
                 fstab_options=None, snapshots=False, default_subvolume=None,
                 target=Target.desired, can_live_on_logical_volume=None,
                 logical_volume_name=None):
        """
            :keyword str mount_point: where to mount the volume ("swap" for swap)
            :keyword str fs_type: the format to create or None to leave it unformatted
            :keyword min_size: the minimum acceptable size
            :type min_size: :class:`~.size.Size`
            :keyword desired_size: the size the volume should preferably have
            :type desired_size: :class:`~.size.Size`
            :keyword max_size: the size the volume must never exceed
            :type max_size: :class:`~.size.Size`
            :keyword weight: share of the space beyond the requested size
            :type weight: int or float
            :keyword str disk: name of the only disk the volume may be placed on
            :keyword str reuse: name of an existing device to use instead of
                                creating a new one
            :keyword str default_subvolume: default subvolume of a new btrfs
            :keyword target: the size target of the current attempt
            :type target: :class:`Target`
        """
        self.mount_point = mount_point
        self.fs_type = fs_type
        self.min_size = Size(0) if min_size is None else min_size
        self.desired_size = self.min_size if desired_size is None else desired_size
        self.max_size = UNLIMITED if max_size is None else max_size
        if weight < 0:
            raise ValueError("weight must not be negative")
        self.weight = weight
        self.disk = disk
        self.label = label
        self.uuid = uuid
        self.reuse = reuse
        self.encryption_password = encryption_password
        self.fstab_options = list(fstab_options or [])
        self.snapshots = snapshots
        self.default_subvolume = default_subvolume
        self.target = Target(target)
        self._can_live_on_logical_volume = can_live_on_logical_volume
        self._logical_volume_name = logical_volume_name

        # assigned by distribute_space
        self.disk_size = None

    def __repr__(self):
        return ("<%s id=%d mount_point=%s min=%s max=%s weight=%s disk=%s reuse=%s "
                "disk_size=%s>" %
                (self.__class__.__name__, self.id, self.mount_point, self.min,
                 self.max, self.weight, self.disk, self.reuse, self.disk_size))

    def copy(self):
        return copy.copy(self)

    @property
    def encrypt(self):
        return self.encryption_password is not None

    @property
    def swap(self):
        return self.fs_type == "swap" or self.mount_point == "swap"

    @property
    def root(self):
        return self.mount_point == "/"

    def min_valid_disk_size(self, target=None):
        """ The size this volume needs under the given target.

            :keyword target: the target, the volume's one if None
            :type target: :class:`Target`
            :rtype: :class:`~.size.Size`

            A reused volume needs no space at all. An unlimited desired
            size cannot be satisfied, so the minimum is used instead.
        """
        if self.reuse:
            return Size(0)

        target = self.target if target is None else Target(target)
        if target == Target.desired and not self.desired_size.unlimited:
            return self.desired_size
        return self.min_size

    @property
    def min(self):
        return self.min_valid_disk_size()

    @property
    def max(self):
        return self.max_size

    @property
    def can_live_on_logical_volume(self):
        """ Whether the volume can be placed in an LVM volume group. """
        if self._can_live_on_logical_volume is not None:
            return self._can_live_on_logical_volume
        if self.mount_point and (self.mount_point == "/boot" or
                                 self.mount_point.startswith("/boot/")):
            return False
        return getattr(self, "partition_id", None) not in NON_LVM_PARTITION_IDS

    @can_live_on_logical_volume.setter
    def can_live_on_logical_volume(self, value):
        self._can_live_on_logical_volume = value

    @property
    def logical_volume_name(self):
        """ Name for the logical volume, derived from the mount point. """
        if self._logical_volume_name:
            return self._logical_volume_name
        if not self.mount_point:
            return None
        if self.mount_point == "/":
            return "root"
        return self.mount_point.strip("/").replace("/", "_")

    @logical_volume_name.setter
    def logical_volume_name(self, value):
        self._logical_volume_name = value


class PlannedPartition(PlannedVolume):

    """ A partition the proposal wants to create. """

    def __init__(self, mount_point=None, fs_type=None, partition_id=None,
                 primary=False, bootable=False, max_start_offset=None, lvm_pv=False,
                 **kwargs):
        """
            :keyword partition_id: the id for the new partition
            :type partition_id: :class:`~.devices.PartitionId`
            :keyword bool primary: whether the partition must be primary
            :keyword bool bootable: whether to set the boot flag
            :keyword max_start_offset: the partition must start before this offset
            :type max_start_offset: :class:`~.size.Size`
            :keyword bool lvm_pv: whether the partition holds the physical
                                  volume for the planned logical volumes

            See :class:`PlannedVolume` for the remaining arguments.
        """
        self.partition_id = PartitionId(partition_id) if partition_id else None
        self.primary = primary
        self.bootable = bootable
        self.max_start_offset = max_start_offset
        self.lvm_pv = lvm_pv
        super(PlannedPartition, self).__init__(mount_point=mount_point, fs_type=fs_type,
                                               **kwargs)


class PlannedLv(PlannedVolume):

    """ A logical volume the proposal wants to create. """

    max_start_offset = None

    @property
    def lv_name(self):
        return self.logical_volume_name


def distribute_space(volumes, space_size, rounding=None, align_grain=None,
                     end_alignment=False):
    """ Distribute a space among the given volumes.

        :param volumes: the volumes, in the order they will be placed
        :type volumes: list of :class:`PlannedVolume`
        :param space_size: the size to distribute
        :type space_size: :class:`~.size.Size`
        :keyword rounding: the unit every size is a multiple of
                           (align_grain or 1 byte if None)
        :type rounding: :class:`~.size.Size`
        :keyword align_grain: alignment of the region the space belongs to
        :type align_grain: :class:`~.size.Size`
        :keyword bool end_alignment: whether the end of the volumes must
                                     be aligned too
        :returns: copies of the volumes with :attr:`~PlannedVolume.disk_size` set
        :rtype: list of :class:`PlannedVolume`
        :raises: :class:`~.errors.NoDiskSpaceError`

        Every volume gets its requested size first. What is left is shared
        according to the weights of the volumes, never beyond their max
        size.
    """
    needed_size = size_sum(v.min for v in volumes)
    if space_size < needed_size:
        log.error("not enough space: needed %s, available %s", needed_size, space_size)
        raise NoDiskSpaceError("not enough space for the volumes")

    rounding = rounding or align_grain or Size(1)

    result = []
    for volume in volumes:
        new_volume = volume.copy()
        new_volume.disk_size = volume.min.ceil(rounding)
        result.append(new_volume)

    if not result:
        return result

    adjust_to_end = align_grain is not None and not end_alignment
    if adjust_to_end:
        _adjust_size_to_last_slot(result[-1], space_size, align_grain)

    extra_size = space_size - size_sum(v.disk_size for v in result)
    unused = _distribute_extra_space(result, extra_size, rounding)
    if adjust_to_end and Size(0) < unused < align_grain:
        _assign_leftover(result, unused)

    return result


def _adjust_size_to_last_slot(volume, space_size, align_grain):
    """ Let the last volume end at the unaligned end of the space. """
    mod = space_size % align_grain
    if mod == Size(0):
        return

    missing = align_grain - mod
    adjusted = volume.disk_size - missing
    if adjusted >= volume.min:
        volume.disk_size = adjusted


def _room(volume, rounding):
    """ Number of rounding units the volume may still grow. """
    if volume.max_size.unlimited:
        return None
    if volume.disk_size >= volume.max_size:
        return 0
    room = (volume.max_size - volume.disk_size).floor(rounding)
    return room.get_bytes() // rounding.get_bytes()


def _distribute_extra_space(volumes, extra_size, rounding):
    """ Share extra_size among the volumes according to their weights.

        Each pass splits the remaining units proportionally to the weights
        of the volumes that can still grow, using the largest remainder to
        place the units lost by truncation. A pass either hands out every
        unit or saturates at least one volume, which then leaves the set of
        candidates, so there are never more than len(volumes) + 1 passes.

        :returns: the size that could not be distributed
        :rtype: :class:`~.size.Size`
    """
    if extra_size < rounding:
        return extra_size

    unit = rounding.get_bytes()
    units = extra_size.get_bytes() // unit
    distributed = 0
    candidates = volumes
    for _i in range(len(volumes) + 1):
        remaining = units - distributed
        if remaining <= 0:
            break

        candidates = [v for v in candidates if _room(v, rounding) != 0]
        total_weight = sum(Decimal(str(v.weight)) for v in candidates)
        if not candidates or total_weight == 0:
            break

        log.debug("distributing %s extra space among %d volumes",
                  Size(remaining * unit), len(candidates))
        exact = [Decimal(remaining) * Decimal(str(v.weight)) / total_weight
                 for v in candidates]
        shares = [int(e) for e in exact]
        lost = remaining - sum(shares)
        by_remainder = sorted(range(len(candidates)),
                              key=lambda i: (shares[i] - exact[i], i))
        for i in by_remainder[:lost]:
            shares[i] += 1

        assigned = 0
        for volume, share in zip(candidates, shares):
            room = _room(volume, rounding)
            if room is not None:
                share = min(share, room)
            if not share:
                continue
            volume.disk_size += Size(share * unit)
            assigned += share
            log.debug("adding %s to %s, now %s", Size(share * unit),
                      volume.mount_point, volume.disk_size)

        distributed += assigned
        if not assigned:
            break

    unused = extra_size - Size(distributed * unit)
    if unused >= rounding:
        log.info("could not distribute %s", unused)
    return unused


def _assign_leftover(volumes, unused):
    """ Give a sliver smaller than the alignment grain to a volume.

        The volume receiving it is placed last so the following volumes
        stay aligned. Volumes with a restricted start keep their position.
    """
    candidates = [v for v in volumes if v.disk_size + unused <= v.max_size]
    if not candidates:
        log.debug("leaving %s unused, every volume reached its max size", unused)
        return

    chosen = candidates[-1]
    if chosen is not volumes[-1]:
        if getattr(chosen, "max_start_offset", None) is not None:
            log.debug("leaving %s unused", unused)
            return
        volumes.remove(chosen)
        volumes.append(chosen)

    chosen.disk_size += unused
    log.debug("adding the remaining %s to %s", unused, chosen.mount_point)
