# devices/lib.py
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

from enum import Enum

from ..size import Size

LINUX_SECTOR_SIZE = Size(512)
DEFAULT_ALIGN_GRAIN = Size("1 MiB")


class Tags(str, Enum):
    """Tags that describe the kind of a device and some of its traits."""
    disk = 'disk'
    partition = 'partition'
    luks = 'luks'
    lvm_vg = 'lvm_vg'
    lvm_lv = 'lvm_lv'
    installation_media = 'installation_media'
    removable = 'removable'
    usb = 'usb'


class PartitionType(str, Enum):
    primary = 'primary'
    extended = 'extended'
    logical = 'logical'


class PartitionId(str, Enum):
    """Partition types as stored in the partition table."""
    linux = 'linux'
    swap = 'swap'
    lvm = 'lvm'
    raid = 'raid'
    esp = 'esp'
    bios_boot = 'bios_boot'
    prep = 'prep'
    ntfs = 'ntfs'
    dos32 = 'dos32'
    windows_basic_data = 'windows_basic_data'
    extended = 'extended'
    unknown = 'unknown'

    @property
    def linux_native(self):
        return self in (PartitionId.linux, PartitionId.swap, PartitionId.lvm, PartitionId.raid)

    @property
    def windows(self):
        return self in (PartitionId.ntfs, PartitionId.dos32, PartitionId.windows_basic_data)


def partition_name(disk_name, number):
    """ Return the name of a disk's partition.

        Disks whose name ends with a digit (nvme0n1, mmcblk0) separate
        the partition number with a "p".
    """
    if disk_name[-1].isdigit():
        return "%sp%d" % (disk_name, number)
    return "%s%d" % (disk_name, number)
