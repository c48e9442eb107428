# filesystems.py
# Filesystem classes for the storage proposal.
#
# Copyright (C) 2009  Red Hat, Inc.
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

""" Filesystem classes. """

from . import DeviceFormat, register_device_format
from ..i18n import N_
from ..size import Size


class FS(DeviceFormat):

    """ Filesystem base class. """
    _type = "Abstract Filesystem Class"  # fs type name
    _name = None
    _mountable = True
    _min_size = Size("2 MiB")            # default minimal size
    _max_size = Size("16 EiB")
    _snapshots = False                   # supports snapshots

    def __init__(self, **kwargs):
        """
            :keyword mountpoint: the filesystem's planned mountpoint
            :keyword label: the filesystem label
            :keyword uuid: the filesystem UUID
            :keyword options: fstab options for the filesystem
            :type options: str
            :keyword exists: indicates whether this is an existing filesystem
            :type exists: bool
            :keyword bool windows_system: whether the filesystem holds a
                                          Windows installation
        """
        if self.__class__ is FS:
            raise TypeError("FS is an abstract class.")

        DeviceFormat.__init__(self, **kwargs)
        self._windows_system = kwargs.get("windows_system", False)

    @property
    def desc(self):
        s = "%s filesystem" % self.type
        if self.mountpoint:
            s += " mounted at %s" % self.mountpoint
        return s

    @property
    def max_size(self):
        return self._max_size

    @property
    def supports_snapshots(self):
        return self._snapshots

    @property
    def windows_system(self):
        return self._windows_system


class Ext2FS(FS):

    """ ext2 filesystem. """
    _type = "ext2"
    _resizable = True
    _linux_native = True
    _max_size = Size("8 TiB")

register_device_format(Ext2FS)


class Ext3FS(Ext2FS):

    """ ext3 filesystem. """
    _type = "ext3"
    _max_size = Size("16 TiB")

register_device_format(Ext3FS)


class Ext4FS(Ext3FS):

    """ ext4 filesystem. """
    _type = "ext4"
    _max_size = Size("1 EiB")

register_device_format(Ext4FS)


class FATFS(FS):

    """ FAT filesystem. """
    _type = "vfat"
    _resizable = True
    _max_size = Size("1 TiB")

register_device_format(FATFS)


class EFIFS(FATFS):
    _type = "efi"
    _name = N_("EFI System Partition")
    _min_size = Size("50 MiB")

register_device_format(EFIFS)


class BTRFS(FS):

    """ btrfs filesystem """
    _type = "btrfs"
    _linux_native = True
    _resizable = True
    _snapshots = True
    _min_size = Size("256 MiB")

    def __init__(self, **kwargs):
        """
            :keyword bool snapshots: whether snapshots of the filesystem
                                     are taken automatically
            :keyword str default_subvolume: subvolume mounted when none
                                            is given, the top level if None
        """
        FS.__init__(self, **kwargs)
        self.snapshots = kwargs.get("snapshots", False)
        self.default_subvolume = kwargs.get("default_subvolume")

register_device_format(BTRFS)


class XFS(FS):

    """ XFS filesystem """
    _type = "xfs"
    _min_size = Size("16 MiB")
    _linux_native = True

register_device_format(XFS)


class NTFS(FS):

    """ ntfs filesystem. """
    _type = "ntfs"
    _resizable = True
    _min_size = Size("1 MiB")
    _max_size = Size("16 TiB")

register_device_format(NTFS)
