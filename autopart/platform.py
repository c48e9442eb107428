# platform.py
# Architecture-specific information
#
# Copyright (C) 2009-2011
# Red Hat, Inc.  All rights reserved.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#

from .size import Size

import logging
log = logging.getLogger("autopart")

# msdos disklabels cannot address sectors beyond this limit
MSDOS_MAX_DISK_SIZE = Size("2 TiB")
DEFAULT_RAM_SIZE = Size("4 GiB")


class Platform(object):

    """Platform

       A class containing platform-specific information for the storage
       proposal. Instances are created explicitly, usually with
       :func:`get_platform`, and handed to the components that need them."""

    _type = None
    _efi = False
    _ppc = False
    _disklabel_types = []

    def __init__(self, ram_size=None):
        """
            :keyword ram_size: the amount of RAM of the system
            :type ram_size: :class:`~.size.Size`
        """
        self.ram_size = Size(ram_size or DEFAULT_RAM_SIZE)
        self._disklabel_types = list(self.__class__._disklabel_types)

    def __str__(self):
        return "%s platform (RAM %s)" % (self.type, self.ram_size)

    @property
    def type(self):
        return self._type

    @property
    def efi(self):
        """Whether the system boots using UEFI."""
        return self._efi

    @property
    def ppc(self):
        return self._ppc

    @property
    def disklabel_types(self):
        """A list of valid disklabel types for this architecture."""
        return self._disklabel_types

    @property
    def default_disklabel_type(self):
        """The default disklabel type for this architecture."""
        return self.disklabel_types[0]

    def set_default_disklabel_type(self, disklabel):
        """Make the disklabel the default

           :param str disklabel: The disklabel type to set as default
           :returns: True if successful False if disklabel not supported
        """
        if disklabel not in self._disklabel_types:
            return False

        self._disklabel_types.remove(disklabel)
        self._disklabel_types.insert(0, disklabel)
        log.debug("Default disklabel has been set to %s", disklabel)
        return True

    def best_disklabel_type(self, device):
        """The best disklabel type for the specified device."""
        label_type = self.default_disklabel_type
        log.debug("default disklabel type for %s is %s", device.name, label_type)

        # use the first supported type for this platform
        # that is large enough to address the whole device
        for lt in self.disklabel_types:
            if lt == "msdos" and device.size > MSDOS_MAX_DISK_SIZE:
                continue
            label_type = lt
            break

        log.debug("best disklabel type for %s is %s", device.name, label_type)
        return label_type


class X86(Platform):
    _type = "x86"
    _disklabel_types = ["gpt", "msdos"]


class EFI(Platform):
    _type = "efi"
    _efi = True
    _disklabel_types = ["gpt", "msdos"]


class Aarch64EFI(EFI):
    _type = "aarch64-efi"
    _disklabel_types = ["gpt", "msdos"]


class PPC(Platform):
    _type = "ppc"
    _ppc = True
    _disklabel_types = ["gpt", "msdos"]


class S390(Platform):
    _type = "s390"
    _disklabel_types = ["msdos", "dasd"]


platforms = {"x86": X86, "efi": EFI, "aarch64-efi": Aarch64EFI,
             "ppc": PPC, "s390": S390}


def get_platform(platform_type="x86", ram_size=None):
    """Return a new instance of the Platform subclass for the given type.

       :keyword str platform_type: one of the keys of :data:`platforms`
       :keyword ram_size: the amount of RAM of the system
       :raises: ValueError for unknown platform types
    """
    try:
        platform_class = platforms[platform_type]
    except KeyError:
        raise ValueError("Unsupported platform type: %s" % platform_type)

    return platform_class(ram_size=ram_size)
