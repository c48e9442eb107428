# errors.py
# Exception classes for the storage proposal.
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

from .i18n import N_


class StorageError(Exception):

    def __init__(self, *args, **kwargs):
        self.hardware_fault = kwargs.pop("hardware_fault", False)
        super(StorageError, self).__init__(*args, **kwargs)


class ConfigurationError(StorageError):
    """ The proposal settings are internally inconsistent. """
    pass

# Device


class DeviceError(StorageError):
    pass


class DeviceCreateError(DeviceError):
    pass


class DeviceResizeError(DeviceError):
    pass


class HierarchyError(DeviceError):
    pass


class DeviceNotFoundError(StorageError):
    pass

# Proposal


class ProposalError(StorageError):
    """ A proposal attempt failed and may be retried with other options. """
    _reason = N_("The proposal failed.")

    @property
    def reason(self):
        """ A short, translatable explanation meant for the user. """
        return self._reason


class NoDiskSpaceError(ProposalError):
    _reason = N_("There is not enough disk space for the requested volumes.")


class NoMorePartitionSlotError(NoDiskSpaceError):
    _reason = N_("The partition table cannot hold the requested partitions.")


class NotBootableError(ProposalError):
    _reason = N_("The boot requirements of the system cannot be satisfied.")


class UnexpectedCallError(StorageError):
    pass


class ProposalCancelledError(StorageError):
    pass

# Fixtures


class FactoryError(StorageError):
    pass


class CyclicGraphError(StorageError):
    pass
