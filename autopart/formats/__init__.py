# formats/__init__.py
# Entry point for anaconda storage formats subpackage.
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

from ..util import ObjectID
from ..i18n import N_
from ..size import Size

import logging
log = logging.getLogger("autopart")

device_formats = {}


def register_device_format(fmt_class):
    if not issubclass(fmt_class, DeviceFormat):
        raise ValueError("arg1 must be a subclass of DeviceFormat")

    device_formats[fmt_class._type] = fmt_class
    log.debug("registered device format class %s as %s", fmt_class.__name__,
              fmt_class._type)


def get_format(fmt_type, *args, **kwargs):
    """ Return an instance of the appropriate DeviceFormat class.

        :param fmt_type: The name of the formatting type
        :type fmt_type: str.
        :return: the format instance
        :rtype: :class:`DeviceFormat`
        :raises: ValueError

        .. note::

            Any additional arguments will be passed on to the constructor for
            the format class. See the various :class:`DeviceFormat` subclasses
            for an exhaustive list of the arguments that can be passed.
    """
    fmt_class = get_device_format_class(fmt_type)
    if not fmt_class:
        if fmt_type:
            raise ValueError("unknown format type: %s" % fmt_type)
        fmt_class = DeviceFormat
    fmt = fmt_class(*args, **kwargs)

    log.debug("get_format('%s') returning %s instance with object id %d",
              fmt_type, fmt.__class__.__name__, fmt.id)
    return fmt


def get_device_format_class(fmt_type):
    """ Return an appropriate format class.

        :param fmt_type: The name of the format type.
        :type fmt_type: str.
        :returns: The chosen DeviceFormat class
        :rtype: class.

        Returns None if no class is found for fmt_type.
    """
    fmt = device_formats.get(fmt_type)
    if not fmt:
        for fmt_class in device_formats.values():
            if fmt_type and fmt_type == fmt_class._name:
                fmt = fmt_class
                break

    return fmt


class DeviceFormat(ObjectID):

    """ Generic device format.

        This represents the absence of recognized formatting. That could mean a
        device is uninitialized, has had zeros written to it, or contains some
        valid formatting that this module does not support.
    """
    _type = None
    _name = N_("Unknown")
    _linux_native = False               # for space making
    _resizable = False                  # can be resized
    _mountable = False                  # can be mounted
    _min_size = Size(0)                 # minimum size

    def __init__(self, **kwargs):
        """
            :keyword device: The path to the device node.
            :type device: str
            :keyword uuid: the formatting's UUID.
            :type uuid: str
            :keyword label: the formatting's label.
            :type label: str
            :keyword exists: Whether the formatting exists. (default: False)
            :keyword options: fstab options
            :type options: str
            :keyword mountpoint: the planned mount point, if any
            :type mountpoint: str
            :keyword min_size: how far an existing format can be shrunk
            :type min_size: :class:`~.size.Size`
        """
        ObjectID.__init__(self)
        self.device = kwargs.get("device")
        self.uuid = kwargs.get("uuid")
        self.label = kwargs.get("label")
        self.exists = kwargs.get("exists", False)
        self.options = kwargs.get("options")
        self.mountpoint = kwargs.get("mountpoint")
        self._min_instance_size = Size(kwargs.get("min_size") or 0)

    def __repr__(self):
        s = ("%(classname)s instance (%(id)s) object id %(object_id)d--\n"
             "  type = %(type)s  name = %(name)s\n"
             "  device = %(device)s  uuid = %(uuid)s  exists = %(exists)s\n"
             "  options = %(options)s  resizable = %(resize)s\n" %
             {"classname": self.__class__.__name__, "id": "%#x" % id(self),
              "object_id": self.id,
              "type": self.type, "name": self.name,
              "device": self.device, "uuid": self.uuid, "exists": self.exists,
              "options": self.options, "resize": self.resizable})
        return s

    @property
    def _existence_str(self):
        return "existing" if self.exists else "non-existent"

    @property
    def desc(self):
        return str(self.type)

    def __str__(self):
        return "%s %s" % (self._existence_str, self.desc)

    @property
    def name(self):
        return self._name

    @property
    def type(self):
        return self._type

    @property
    def min_size(self):
        """ The minimum size this format can be shrunk to. """
        return max(self._min_size, self._min_instance_size)

    @property
    def resizable(self):
        """ Can formats of this type be resized? """
        return self._resizable and self.exists

    @property
    def linux_native(self):
        """ Is this format type native to linux? """
        return self._linux_native

    @property
    def mountable(self):
        return self._mountable

    @property
    def windows_system(self):
        """ Does this format hold a Windows installation? """
        return False

    def dict(self):
        d = {"type": self.type, "name": self.name, "device": self.device,
             "uuid": self.uuid, "exists": self.exists,
             "options": self.options, "mountpoint": self.mountpoint}
        return d


register_device_format(DeviceFormat)

# import the format modules (which register their device formats)
from . import biosboot, disklabel, fs, luks, lvmpv, prepboot, swap
