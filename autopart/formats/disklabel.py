# disklabel.py
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

from collections import namedtuple

from . import DeviceFormat, register_device_format
from ..devices.lib import PartitionId
from ..i18n import N_
from ..size import Size

import logging
log = logging.getLogger("autopart")

LabelTraits = namedtuple("LabelTraits", ["max_primary", "extended_possible",
                                         "max_logical", "require_end_alignment",
                                         "end_overhead", "boot_flag"])

# the backup GPT header and partition entries at the end of the disk
GPT_END_OVERHEAD = Size(33 * 512)

label_traits = {
    "msdos": LabelTraits(max_primary=4, extended_possible=True, max_logical=256,
                         require_end_alignment=False, end_overhead=Size(0),
                         boot_flag=True),
    "gpt": LabelTraits(max_primary=128, extended_possible=False, max_logical=0,
                       require_end_alignment=False, end_overhead=GPT_END_OVERHEAD,
                       boot_flag=True),
    "dasd": LabelTraits(max_primary=3, extended_possible=False, max_logical=0,
                        require_end_alignment=True, end_overhead=Size(0),
                        boot_flag=False),
}


class DiskLabel(DeviceFormat):

    """ Disklabel """
    _type = "disklabel"
    _name = N_("partition table")

    def __init__(self, **kwargs):
        """
            :keyword label_type: type of disklabel to create
            :type label_type: str
            :keyword exists: whether the formatting exists
            :type exists: bool
        """
        DeviceFormat.__init__(self, **kwargs)
        self._label_type = kwargs.get("label_type") or "gpt"
        if self._label_type not in label_traits:
            raise ValueError("unsupported disklabel type: %s" % self._label_type)

    def __repr__(self):
        s = DeviceFormat.__repr__(self)
        s += ("  type = %(type)s" % {"type": self.label_type})
        return s

    @property
    def desc(self):
        return "%s %s" % (self.label_type, self.type)

    def dict(self):
        d = super(DiskLabel, self).dict()
        d.update({"label_type": self.label_type,
                  "max_primary": self.max_primary})
        return d

    @property
    def label_type(self):
        """ The disklabel type (eg: 'gpt', 'msdos') """
        return self._label_type

    @property
    def _traits(self):
        return label_traits[self._label_type]

    @property
    def max_primary(self):
        """ Number of primary (and extended) partitions this label can hold. """
        return self._traits.max_primary

    @property
    def extended_possible(self):
        return self._traits.extended_possible

    @property
    def max_logical(self):
        return self._traits.max_logical

    @property
    def require_end_alignment(self):
        """ Whether partitions must end at a grain boundary. """
        return self._traits.require_end_alignment

    @property
    def end_overhead(self):
        """ Space at the end of the disk that no partition may use. """
        return self._traits.end_overhead

    @property
    def boot_flag_supported(self):
        return self._traits.boot_flag

    def partition_id_for(self, partition_id):
        """ Return the partition id this label really uses for partition_id.

            DASD labels have no specific id for swap partitions.
        """
        if self.label_type == "dasd" and partition_id == PartitionId.swap:
            return PartitionId.linux
        return partition_id

register_device_format(DiskLabel)
