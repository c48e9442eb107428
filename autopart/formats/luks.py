# luks.py
# Device format classes for the storage proposal.
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

from . import DeviceFormat, register_device_format
from ..i18n import N_
from ..size import Size

# size of the LUKS2 header
LUKS_METADATA_SIZE = Size("16 MiB")


class LUKS(DeviceFormat):

    """ A LUKS device. """
    _type = "luks"
    _name = N_("encrypted")
    _linux_native = True                # for space making
    _min_size = LUKS_METADATA_SIZE

    def __init__(self, **kwargs):
        """
            :keyword name: the name of the map for the device
            :keyword passphrase: the passphrase for the device
            :keyword luks_version: "luks1" or "luks2" (default)
        """
        DeviceFormat.__init__(self, **kwargs)
        self.map_name = kwargs.get("name")
        self.luks_version = kwargs.get("luks_version") or "luks2"
        self.__passphrase = kwargs.get("passphrase")

    @property
    def has_key(self):
        return bool(self.__passphrase)

    def _set_passphrase(self, passphrase):
        """ Set the passphrase used to access this device. """
        self.__passphrase = passphrase

    passphrase = property(fset=_set_passphrase)

    def dict(self):
        data = super(LUKS, self).dict()
        data.update({"map_name": self.map_name, "version": self.luks_version,
                     "has_key": self.has_key})
        return data

register_device_format(LUKS)
