# devicegraph.py
# Device management for the storage proposal.
#
# Copyright (C) 2009-2014  Red Hat, Inc.
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

from .devices import Tags, PartitionType, PartitionId
from .devices import DiskDevice, PartitionDevice, LUKSDevice
from .devices import LVMVolumeGroupDevice, LVMLogicalVolumeDevice
from .devices.lib import partition_name
from .errors import DeviceCreateError, DeviceResizeError, HierarchyError
from .errors import DeviceNotFoundError
from .formats import get_format
from .size import Size
from .storage_log import log_method_call

import logging
log = logging.getLogger("autopart")

FIRST_LOGICAL_NUMBER = 5


class DeviceGraph(object):

    """ A quasi-tree that represents the devices in the system.

        The graph is an in-memory model. Every mutation applies
        immediately and free spaces are always computed from the current
        state. Use :meth:`copy` to get an independent working copy.
    """

    def __init__(self, devices=None):
        self._devices = []
        for device in devices or []:
            self._add_device(device)

    def __str__(self):
        def show_subtree(root, depth):
            abbreviate_subtree = root in rendered
            rendered.add(root)
            s = "%s%s\n" % ("  " * depth, root)
            if abbreviate_subtree:
                s = "%s%s (See above)\n" % ("  " * depth, root.name)
            else:
                for child in root.children:
                    s += show_subtree(child, depth + 1)
            return s

        roots = [d for d in self._devices if not d.parents]
        rendered = set()
        return "".join(show_subtree(root, 0) for root in roots)

    def copy(self):
        """ Return an independent deep copy of this graph. """
        return copy.deepcopy(self)

    @property
    def devices(self):
        """ List of devices currently in the graph. """
        return self._devices[:]

    @property
    def names(self):
        return [d.name for d in self._devices]

    @property
    def disks(self):
        return [d for d in self._devices if Tags.disk in d.tags]

    @property
    def partitions(self):
        return [d for d in self._devices if Tags.partition in d.tags]

    @property
    def vgs(self):
        return [d for d in self._devices if Tags.lvm_vg in d.tags]

    @property
    def lvs(self):
        return [d for d in self._devices if Tags.lvm_lv in d.tags]

    @property
    def leaves(self):
        """ List of all devices upon which no other devices exist. """
        return [d for d in self._devices if d.is_leaf]

    @property
    def filesystems(self):
        """ List of filesystems. """
        return [d.format for d in self._devices
                if getattr(d, "format", None) is not None and d.format.mountable]

    @property
    def mountpoints(self):
        """ Dict with mountpoint keys and device values. """
        return dict((d.format.mountpoint, d) for d in self._devices
                    if getattr(d, "format", None) is not None and d.format.mountpoint)

    def get_device_by_name(self, name):
        """ Return the device with the given name or None. """
        return next((d for d in self._devices if d.name == name), None)

    def find_device(self, name):
        """ Like :meth:`get_device_by_name` but fails when it is missing. """
        device = self.get_device_by_name(name)
        if device is None:
            raise DeviceNotFoundError("no device named %s" % name)
        return device

    def _add_device(self, newdev):
        """ Add a device to the graph.

            :param newdev: the device to add
            :type newdev: a subclass of :class:`~.devices.Device`
            :raises: :class:`~.errors.HierarchyError`
        """
        if self.get_device_by_name(newdev.name) is not None:
            raise HierarchyError("Trying to add already existing device %s." % newdev.name)

        # make sure this device's parent devices are in the graph already
        for parent in newdev.parents:
            if parent not in self._devices:
                raise HierarchyError("parent device not in graph")

        for parent in newdev.parents:
            parent.children.append(newdev)
        self._devices.append(newdev)
        log.info("added %s %s (id %d) to device graph", newdev.type,
                 newdev.name, newdev.id)

    def _remove_device(self, dev):
        """ Remove a device with no children from the graph. """
        if dev not in self._devices:
            raise DeviceNotFoundError("device %s is not in the graph" % dev.name)

        if dev.children:
            raise HierarchyError("Cannot remove non-leaf device '%s'" % dev.name)

        for parent in dev.parents:
            parent.children.remove(dev)
        self._devices.remove(dev)
        log.info("removed %s %s (id %d) from device graph", dev.type,
                 dev.name, dev.id)

    def recursive_remove(self, device):
        """ Remove a device after removing its dependent devices.

            :returns: the names of all removed devices
            :rtype: list of str
        """
        log_method_call(self, device.name)
        removed = []
        for child in device.children[:]:
            removed.extend(self.recursive_remove(child))
        self._remove_device(device)
        removed.append(device.name)
        return removed

    def descendants(self, device):
        result = []
        for child in device.children:
            result.append(child)
            result.extend(self.descendants(child))
        return result

    #
    # partitioning
    #
    def new_disk(self, name, size, **kwargs):
        """ Add a disk to the graph.

            Keyword arguments are passed to :class:`~.devices.DiskDevice`.

            :rtype: :class:`~.devices.DiskDevice`
        """
        log_method_call(self, name, size=size, **kwargs)
        disk = DiskDevice(name, size=size, **kwargs)
        self._add_device(disk)
        return disk

    def free_spaces(self, disks=None, label_type=None):
        """ Return the free spaces of the given disks.

            :keyword disks: the disks to inspect (default: all)
            :type disks: list of str or :class:`~.devices.DiskDevice`
            :keyword str label_type: the partition table type assumed for
                                     disks without any format
            :rtype: list of :class:`~.freespace.FreeDiskSpace`
        """
        spaces = []
        for disk in self._disks_from(disks):
            spaces.extend(disk.free_spaces(label_type=label_type))
        return spaces

    def _disks_from(self, disks):
        if disks is None:
            return self.disks
        result = []
        for disk in disks:
            if isinstance(disk, str):
                disk = self.find_device(disk)
            result.append(disk)
        return result

    def new_partition_table(self, disk, label_type):
        """ Create a new, empty partition table on a disk. """
        log_method_call(self, disk.name, label_type=label_type)
        if disk.children:
            raise HierarchyError("disk %s is in use" % disk.name)
        disk.format = get_format("disklabel", label_type=label_type)
        return disk.format

    def remove_partition_table(self, disk):
        """ Remove an empty partition table from a disk. """
        log_method_call(self, disk.name)
        if disk.partition_table is None:
            raise HierarchyError("disk %s has no partition table" % disk.name)
        if disk.partitions:
            raise HierarchyError("partition table of %s is not empty" % disk.name)
        disk.format = None

    def new_partition(self, disk, region, part_type=PartitionType.primary,
                      part_id=None, bootable=False):
        """ Create a partition at the given region of a disk.

            :param disk: the disk
            :type disk: :class:`~.devices.DiskDevice`
            :param region: the blocks for the new partition
            :type region: :class:`~.freespace.Region`
            :keyword part_type: the partition type
            :type part_type: :class:`~.devices.PartitionType`
            :keyword part_id: the partition id
            :type part_id: :class:`~.devices.PartitionId`
            :keyword bool bootable: whether to set the boot flag
            :returns: the new partition
            :rtype: :class:`~.devices.PartitionDevice`
            :raises: :class:`~.errors.HierarchyError` if the partition
                     table cannot hold the partition or the region is
                     already in use
        """
        log_method_call(self, disk.name, region=region, part_type=part_type, part_id=part_id)
        disklabel = disk.partition_table
        if disklabel is None:
            raise HierarchyError("disk %s has no partition table" % disk.name)

        part_type = PartitionType(part_type)
        first, last = disk.usable_blocks(disklabel)
        if region.length <= 0 or region.start < first or region.end > last:
            raise DeviceCreateError("region %s is outside of the usable area of %s" %
                                    (region, disk.name))

        extended = disk.extended_partition
        if part_type == PartitionType.logical:
            if extended is None:
                raise HierarchyError("no extended partition on %s" % disk.name)
            if not (extended.region.contains(region.start) and
                    extended.region.contains(region.end)):
                raise HierarchyError("logical partition outside of the extended one")
            siblings = disk.logical_partitions
            number = self._next_number(disk, FIRST_LOGICAL_NUMBER,
                                       FIRST_LOGICAL_NUMBER + disklabel.max_logical - 1)
        else:
            if part_type == PartitionType.extended:
                if not disklabel.extended_possible:
                    raise HierarchyError("%s does not support extended partitions" %
                                         disklabel.label_type)
                if extended is not None:
                    raise HierarchyError("%s already has an extended partition" % disk.name)
            if disk.num_primary >= disklabel.max_primary:
                raise HierarchyError("no free primary slot on %s" % disk.name)
            siblings = [p for p in disk.partitions if not p.is_logical]
            number = self._next_number(disk, 1, disklabel.max_primary)

        for sibling in siblings:
            if sibling.region.overlaps(region):
                raise HierarchyError("region %s overlaps with %s" % (region, sibling.name))

        if part_id is None:
            part_id = PartitionId.extended if part_type == PartitionType.extended \
                else PartitionId.linux
        if not disklabel.boot_flag_supported:
            bootable = False

        partition = PartitionDevice(partition_name(disk.name, number), disk,
                                    region.start, region.length, number,
                                    part_type=part_type,
                                    part_id=disklabel.partition_id_for(PartitionId(part_id)),
                                    bootable=bootable)
        self._add_device(partition)
        return partition

    def _next_number(self, disk, first, last):
        used = set(p.number for p in disk.partitions)
        for number in range(first, last + 1):
            if number not in used:
                return number
        raise HierarchyError("no free partition number on %s" % disk.name)

    def delete_partition(self, partition):
        """ Delete a partition and everything on top of it.

            Deleting an extended partition deletes its logical partitions.

            :returns: the names of all removed devices
            :rtype: list of str
        """
        log_method_call(self, partition.name)
        removed = []
        if partition.is_extended:
            for logical in partition.disk.logical_partitions:
                removed.extend(self.recursive_remove(logical))
        removed.extend(self.recursive_remove(partition))
        return removed

    def resize_partition(self, partition, size):
        """ Shrink a partition, keeping its start.

            The new end is aligned to the disk's grain.

            :param size: the requested new size
            :type size: :class:`~.size.Size`
            :returns: the actual new size
            :rtype: :class:`~.size.Size`
        """
        log_method_call(self, partition.name, size=size)
        if not partition.format.resizable:
            raise DeviceResizeError("partition %s cannot be resized" % partition.name)
        if size > partition.size:
            raise DeviceResizeError("partition %s can only be shrunk" % partition.name)

        disk = partition.disk
        end = disk.align_down(partition.start + partition.region.blocks_for(size))
        length = end - partition.start
        if length <= 0 or Size(length * disk.block_size.get_bytes()) < partition.format.min_size:
            raise DeviceResizeError("partition %s cannot be shrunk to %s" %
                                    (partition.name, size))

        partition.length = length
        return partition.size

    def wipe_device(self, device):
        """ Remove everything on top of a device, including its format. """
        log_method_call(self, device.name)
        removed = []
        for child in device.children[:]:
            removed.extend(self.recursive_remove(child))
        device.format = None
        return removed

    #
    # formats, encryption and LVM
    #
    def new_format(self, device, fmt_type, **kwargs):
        """ Create a new format of fmt_type on a device. """
        log_method_call(self, device.name, fmt_type=fmt_type, **kwargs)
        if device.children:
            raise HierarchyError("device %s is in use" % device.name)
        device.format = get_format(fmt_type, **kwargs)
        return device.format

    def new_luks(self, device, name, passphrase):
        """ Encrypt a device.

            :returns: the mapped device, ready to hold a format
            :rtype: :class:`~.devices.LUKSDevice`
        """
        log_method_call(self, device.name, name=name, passphrase=passphrase)
        self.new_format(device, "luks", name=name, passphrase=passphrase)
        luks = LUKSDevice(name, parents=[device])
        self._add_device(luks)
        return luks

    def new_vg(self, name, pvs, pe_size=None):
        """ Create a volume group on top of the given devices. """
        log_method_call(self, name, pvs=[pv.name for pv in pvs])
        for pv in pvs:
            if pv.format.type != "lvmpv":
                self.new_format(pv, "lvmpv")
            pv.format.vg_name = name
        vg = LVMVolumeGroupDevice(name, parents=list(pvs), pe_size=pe_size)
        self._add_device(vg)
        return vg

    def new_lv(self, vg, name, size):
        """ Create a logical volume in a volume group. """
        log_method_call(self, vg.name, name=name, size=size)
        size = vg.align(size)
        if size > vg.free_space:
            raise DeviceCreateError("not enough free space in %s for %s" % (vg.name, name))
        lv = LVMLogicalVolumeDevice(name, parents=[vg], size=size)
        self._add_device(lv)
        return lv
