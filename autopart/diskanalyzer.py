# diskanalyzer.py
# Classification of the existing devices for the storage proposal.
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

from .devices import Tags

import logging
log = logging.getLogger("autopart")


class PartitionCategory(str, Enum):
    """What kind of system a partition belongs to."""
    windows = 'windows'
    linux = 'linux'
    other = 'other'


class DiskAnalyzer(object):

    """ Analysis of the disks of a device graph.

        Windows partitions are those holding a Windows installation, which
        is only possible on platforms Windows runs on. Linux partitions are
        recognized by their partition id or their format.
    """

    def __init__(self, devicegraph, platform=None):
        """
            :param devicegraph: the probed devices
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :keyword platform: the platform of the system
            :type platform: :class:`~.platform.Platform`
        """
        self.devicegraph = devicegraph
        self.platform = platform

    @property
    def windows_architecture(self):
        """ Whether the architecture of the system is supported by MS Windows. """
        if self.platform is None:
            return True
        return not self.platform.ppc and self.platform.type != "s390"

    def _disks(self, disks):
        if not disks:
            return self.devicegraph.disks
        return [self.devicegraph.find_device(d) if isinstance(d, str) else d for d in disks]

    def _partitions(self, disks):
        return [p for disk in self._disks(disks) for p in disk.partitions if not p.is_extended]

    def category(self, partition):
        """ Return the :class:`PartitionCategory` of a partition. """
        if self.windows_architecture and partition.format.windows_system:
            return PartitionCategory.windows
        if partition.part_id.linux_native or partition.format.linux_native:
            return PartitionCategory.linux
        return PartitionCategory.other

    def windows_partitions(self, *disks):
        """ Partitions containing an installation of MS Windows. """
        return [p for p in self._partitions(disks) if self.category(p) == PartitionCategory.windows]

    def linux_partitions(self, *disks):
        return [p for p in self._partitions(disks) if self.category(p) == PartitionCategory.linux]

    def other_partitions(self, *disks):
        return [p for p in self._partitions(disks) if self.category(p) == PartitionCategory.other]

    def swap_partitions(self, *disks):
        return [p for p in self._partitions(disks) if p.format.type == "swap"]

    def efi_partitions(self, *disks):
        return [p for p in self._partitions(disks) if p.format.type == "efi"]

    @property
    def installation_media(self):
        """ Disks holding the installation media. """
        return [d for d in self.devicegraph.disks if Tags.installation_media in d.tags]

    @property
    def candidate_disks(self):
        """ Disks the system could be installed on.

            The installation media are only candidates when there is no
            other disk.
        """
        disks = self.devicegraph.disks
        media = self.installation_media
        candidates = [d for d in disks if d not in media]
        if not candidates:
            log.info("only installation media found, using them as candidates")
            candidates = disks
        log.debug("candidate disks: %s", [d.name for d in candidates])
        return candidates
