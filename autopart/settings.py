# settings.py
# Settings driving the storage proposal.
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

from enum import Enum

import yaml

from .errors import ConfigurationError
from .size import Size, UNLIMITED, parse_size
from .util import default_namedtuple

import logging
log = logging.getLogger("autopart")

SIZE_FIELDS = ("min_size", "desired_size", "max_size", "max_size_lvm")
FALLBACK_FIELDS = SIZE_FIELDS + ("weight",)


class DeleteMode(str, Enum):
    """What the proposal may do with the existing partitions of a kind."""
    NONE = 'none'
    ONDEMAND = 'ondemand'
    ALL = 'all'


def _delete_mode(value):
    try:
        return DeleteMode(value)
    except ValueError:
        raise ConfigurationError("invalid delete mode: %s" % value)


def _size(field, value):
    try:
        return parse_size(value)
    except Exception as e:  # pylint: disable=broad-except
        raise ConfigurationError("invalid value for %s: %s (%s)" % (field, value, e)) from e


_VolumeSpecification = default_namedtuple("VolumeSpecification",
                                          ["mount_point",
                                           ("proposed", True),
                                           ("proposed_configurable", False),
                                           "fs_type",
                                           "min_size",
                                           "desired_size",
                                           "max_size",
                                           "max_size_lvm",
                                           "weight",
                                           ("adjust_by_ram", False),
                                           ("adjust_by_ram_configurable", False),
                                           "fallback_for_min_size",
                                           "fallback_for_desired_size",
                                           "fallback_for_max_size",
                                           "fallback_for_max_size_lvm",
                                           "fallback_for_weight",
                                           ("snapshots", False),
                                           ("snapshots_configurable", False),
                                           "snapshots_size",
                                           "snapshots_percentage",
                                           "disable_order",
                                           "btrfs_default_subvolume",
                                           ("fstab_options", ())])


class VolumeSpecification(_VolumeSpecification):

    """ The size policy and the format of the volume for one mount point.

        Unset sizes and weight (None) are taken from the volume named by
        the corresponding fallback_for_* field, if any. A volume that is
        not proposed adds its sizes to the volume its fallback fields
        point to.
    """

    def __new__(cls, *args, **kwargs):
        try:
            spec = super(VolumeSpecification, cls).__new__(cls, *args, **kwargs)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

        if not spec.mount_point:
            raise ConfigurationError("volume without mount point")
        spec.validate()
        return spec

    def __str__(self):
        return ("volume %s: min %s, desired %s, max %s, weight %s%s" %
                (self.mount_point, self.min_size, self.desired_size, self.max_size,
                 self.weight, "" if self.proposed else " (not proposed)"))

    def validate(self):
        """ Check the consistency of the specification.

            :raises: :class:`~.errors.ConfigurationError`
        """
        if self.snapshots_size is not None and self.snapshots_percentage is not None:
            raise ConfigurationError("%s: snapshots_size and snapshots_percentage "
                                     "cannot be combined" % self.mount_point)

        if self.weight is not None and self.weight < 0:
            raise ConfigurationError("%s: negative weight" % self.mount_point)

        sizes = [s for s in (self.min_size, self.desired_size, self.max_size) if s is not None]
        if any(a > b for (a, b) in zip(sizes, sizes[1:])):
            raise ConfigurationError("%s: sizes must satisfy min <= desired <= max" %
                                     self.mount_point)

    def copy(self, **changes):
        """ Return a new specification with some fields changed. """
        return VolumeSpecification(**dict(self._asdict(), **changes))

    def fallback_for(self, field):
        """ Mount point the value of field falls back to, if any. """
        return getattr(self, "fallback_for_%s" % field)

    @property
    def btrfs(self):
        return self.fs_type == "btrfs"

    @classmethod
    def from_dict(cls, data):
        """ Create a specification from a product configuration mapping. """
        values = dict(data)
        for field in SIZE_FIELDS + ("snapshots_size",):
            if field in values:
                values[field] = _size(field, values[field])
        if "fstab_options" in values:
            values["fstab_options"] = tuple(values["fstab_options"] or ())
        return cls(**values)


_ProposalSettings = default_namedtuple("ProposalSettings",
                                       [("volumes", ()),
                                        "candidate_devices",
                                        "root_device",
                                        ("use_lvm", False),
                                        "encryption_password",
                                        ("windows_delete_mode", DeleteMode.ONDEMAND),
                                        ("linux_delete_mode", DeleteMode.ONDEMAND),
                                        ("other_delete_mode", DeleteMode.ONDEMAND),
                                        ("resize_windows", True),
                                        ("lvm_vg_name", "system")])


class ProposalSettings(_ProposalSettings):

    """ Immutable settings for one proposal attempt.

        New values are derived with :meth:`copy` and :meth:`with_volume`,
        the orchestrator never changes the settings of a running attempt.
    """

    def __new__(cls, *args, **kwargs):
        try:
            settings = super(ProposalSettings, cls).__new__(cls, *args, **kwargs)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

        volumes = tuple(settings.volumes or ())
        mount_points = [v.mount_point for v in volumes]
        duplicates = sorted(set(m for m in mount_points if mount_points.count(m) > 1))
        if duplicates:
            raise ConfigurationError("duplicate mount points: %s" % ", ".join(duplicates))

        candidates = settings.candidate_devices
        if candidates is not None:
            candidates = tuple(candidates)

        return _ProposalSettings.__new__(
            cls, volumes=volumes,
            candidate_devices=candidates,
            root_device=settings.root_device,
            use_lvm=bool(settings.use_lvm),
            encryption_password=settings.encryption_password,
            windows_delete_mode=_delete_mode(settings.windows_delete_mode),
            linux_delete_mode=_delete_mode(settings.linux_delete_mode),
            other_delete_mode=_delete_mode(settings.other_delete_mode),
            resize_windows=bool(settings.resize_windows),
            lvm_vg_name=settings.lvm_vg_name)

    def __str__(self):
        s = ("Proposal settings: lvm=%s encryption=%s candidates=%s root=%s "
             "delete modes windows=%s linux=%s other=%s resize_windows=%s" %
             (self.use_lvm, self.use_encryption, self.candidate_devices, self.root_device,
              self.windows_delete_mode.value, self.linux_delete_mode.value,
              self.other_delete_mode.value, self.resize_windows))
        for volume in self.volumes:
            s += "\n  %s" % (volume,)
        return s

    def copy(self, **changes):
        """ Return new settings with some fields changed. """
        return ProposalSettings(**dict(self._asdict(), **changes))

    def with_volume(self, mount_point, **changes):
        """ Return new settings with some fields of one volume changed.

            :raises: :class:`~.errors.ConfigurationError` if there is no
                     volume for mount_point
        """
        volume = self.volume(mount_point)
        if volume is None:
            raise ConfigurationError("no volume for %s" % mount_point)
        volumes = tuple(volume.copy(**changes) if v is volume else v for v in self.volumes)
        return self.copy(volumes=volumes)

    def volume(self, mount_point):
        """ The specification for mount_point or None. """
        return next((v for v in self.volumes if v.mount_point == mount_point), None)

    @property
    def proposed_volumes(self):
        return [v for v in self.volumes if v.proposed]

    @property
    def use_encryption(self):
        return bool(self.encryption_password)

    def delete_mode(self, category):
        """ The delete mode for a :class:`~.diskanalyzer.PartitionCategory`. """
        return getattr(self, "%s_delete_mode" % category.value)

    @classmethod
    def from_features(cls, features):
        """ Create settings from a product features mapping.

            :param dict features: a mapping with an optional "proposal"
                                  section of general settings and an
                                  optional "volumes" list
            :raises: :class:`~.errors.ConfigurationError`
        """
        features = features or {}
        if not isinstance(features, dict):
            raise ConfigurationError("product features must be a mapping")

        proposal = dict(features.get("proposal") or {})
        if "lvm" in proposal:
            proposal["use_lvm"] = proposal.pop("lvm")

        if features.get("volumes"):
            volumes = tuple(VolumeSpecification.from_dict(v) for v in features["volumes"])
        else:
            volumes = default_volumes()

        log.debug("creating proposal settings from %s", features)
        return cls(volumes=volumes, **proposal)

    @classmethod
    def from_yaml(cls, stream):
        """ Create settings from a YAML document, see :meth:`from_features`. """
        try:
            features = yaml.safe_load(stream)
        except yaml.YAMLError as e:
            raise ConfigurationError("cannot parse product features: %s" % e) from e
        return cls.from_features(features)

    @classmethod
    def defaults(cls):
        """ Settings with the default volumes and delete modes. """
        return cls(volumes=default_volumes())


def default_volumes():
    """ Volumes used by products that do not define their own. """
    return (VolumeSpecification(mount_point="/", fs_type="btrfs",
                                min_size=Size("5 GiB"), desired_size=Size("10 GiB"),
                                max_size=UNLIMITED, weight=60,
                                snapshots=True, snapshots_configurable=True,
                                btrfs_default_subvolume="@"),
            VolumeSpecification(mount_point="swap", fs_type="swap",
                                min_size=Size("1 GiB"), desired_size=Size("2 GiB"),
                                max_size=Size("2 GiB"), weight=0,
                                adjust_by_ram_configurable=True),
            VolumeSpecification(mount_point="/home", fs_type="xfs",
                                proposed_configurable=True,
                                min_size=Size("10 GiB"), desired_size=Size("20 GiB"),
                                max_size=UNLIMITED, weight=40, disable_order=1,
                                fallback_for_min_size="/", fallback_for_desired_size="/",
                                fallback_for_max_size="/", fallback_for_max_size_lvm="/",
                                fallback_for_weight="/"))
