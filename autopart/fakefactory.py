# fakefactory.py
# Build device graphs from YAML or plain data, mainly for testing.
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

""" A factory of device graphs described as a tree of products.

    Every product is a one-key mapping from the product name to its
    content. The content is a mapping of parameters and sub-products,
    a list of products or a scalar::

        - disk:
            name: sda
            size: 100 GiB
            partition_table: msdos
            partitions:
            - partition:
                size: 40 GiB
                name: sda1
                id: ntfs
                windows_system: true
                file_system: ntfs
            - free:
                size: 10 GiB
            - partition:
                size: unlimited
                name: sda2
                file_system: ext4
                mount_point: /

    Every device built by the factory exists already.
"""

import yaml

from .devicegraph import DeviceGraph
from .devices import Tags, PartitionType, PartitionId
from .errors import FactoryError, DeviceError, CyclicGraphError
from .freespace import Region
from .size import parse_size
from .storage_log import log_method_call
from .tsort import tsort, create_graph

import logging
log = logging.getLogger("autopart")

VALID_TOPLEVEL = ["disk", "lvm_vg"]

# sub-products each product may contain
VALID_HIERARCHY = {
    "disk": ["partition_table", "partitions", "file_system"],
    "partition_table": [],
    "partitions": ["partition", "free"],
    "partition": ["file_system", "encryption"],
    "free": [],
    "file_system": [],
    "encryption": ["file_system"],
    "lvm_vg": ["lvm_lvs", "lvm_pvs"],
    "lvm_lvs": ["lvm_lv"],
    "lvm_lv": ["file_system", "encryption"],
    "lvm_pvs": ["lvm_pv"],
    "lvm_pv": [],
}

# parameters of the file system, given to the device holding it
FILE_SYSTEM_PARAM = ["mount_point", "label", "uuid", "fstab_options", "windows_system",
                     "min_size"]

VALID_PARAM = {
    "disk": ["name", "size", "block_size", "min_grain", "usb",
             "installation_media"] + FILE_SYSTEM_PARAM,
    "partition_table": [],
    "partitions": [],
    "partition": ["size", "start", "name", "type", "id", "bootable"] + FILE_SYSTEM_PARAM,
    "free": ["size"],
    "file_system": [],
    "encryption": ["name", "password"],
    "lvm_vg": ["vg_name", "extent_size"],
    "lvm_lvs": [],
    "lvm_lv": ["lv_name", "size"] + FILE_SYSTEM_PARAM,
    "lvm_pvs": [],
    "lvm_pv": ["blk_device"],
}

SIZE_PARAM = ["size", "start", "block_size", "min_grain", "extent_size", "min_size"]

# products that have to be built before their siblings listed here
DEPENDENCIES = {
    # the file system goes on top of the encryption and a disk cannot
    # have both a partition table and a file system
    "file_system": ["encryption", "partition_table"],
    "partitions": ["partition_table"],
    "lvm_lvs": ["lvm_pvs"],
}


class _PendingVg(object):

    """ A volume group waiting for its physical volumes. """

    def __init__(self, name, extent_size):
        self.name = name
        self.extent_size = extent_size
        self.pvs = []
        self.device = None


class DeviceGraphFactory(object):

    """ Builds the devices of a tree of products into a device graph. """

    def __init__(self, devicegraph=None):
        """
            :keyword devicegraph: where to build the devices, a new graph
                                  if None
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
        """
        self.devicegraph = devicegraph if devicegraph is not None else DeviceGraph()
        self._cursor = {}
        self._fs_params = {}
        self._encrypted = {}

    @classmethod
    def from_yaml(cls, stream, devicegraph=None):
        """ Build a device graph from a YAML document.

            :param stream: the document
            :type stream: str or a file object
            :rtype: :class:`~.devicegraph.DeviceGraph`
        """
        factory = cls(devicegraph)
        factory.build(yaml.safe_load(stream))
        return factory.devicegraph

    def build(self, products):
        """ Build a list of toplevel products.

            :param products: the products, a single one is also accepted
            :type products: list of dict
            :returns: the device graph
            :raises: :class:`~.errors.FactoryError`
        """
        if isinstance(products, dict):
            products = [products]
        if not isinstance(products, list):
            raise FactoryError("expected a list of products, got %r" % (products,))

        for product in products:
            name, content = self._split_product(product)
            if name not in VALID_TOPLEVEL:
                raise FactoryError("%s is not a valid toplevel product" % name)
            self._build(None, name, content)

        return self.devicegraph

    @staticmethod
    def _split_product(product):
        if not isinstance(product, dict) or len(product) != 1:
            raise FactoryError("a product is a mapping with one key, got %r" % (product,))
        return next(iter(product.items()))

    def _build(self, parent, name, content):
        log.debug("building %s on %s", name, getattr(parent, "name", parent))
        children = []
        if isinstance(content, dict):
            params = {}
            for key, value in content.items():
                if key in VALID_HIERARCHY[name]:
                    children.append((key, value))
                elif key in VALID_PARAM[name]:
                    params[key] = value
                else:
                    raise FactoryError("invalid parameter %s for %s" % (key, name))
            result = self._create(parent, name, self._fixup(params))
        elif isinstance(content, list):
            result = self._create(parent, name, {})
            for item in content:
                child, child_content = self._split_product(item)
                children.append((child, child_content))
        else:
            result = self._create(parent, name, content)

        for child, child_content in self._sorted(name, children):
            self._build(result, child, child_content)

        finisher = FINISHERS.get(name)
        if finisher is not None:
            finisher(self, result)
        return result

    @staticmethod
    def _sorted(name, children):
        """ Order sibling products so their dependencies come first.

            Siblings without a dependency between them keep the order of
            the description, free spaces stay between the partitions they
            were written between.
        """
        for child, _content in children:
            if child not in VALID_HIERARCHY[name]:
                raise FactoryError("%s cannot contain %s" % (name, child))

        kinds = [c for c in VALID_HIERARCHY[name] if any(k == c for k, _v in children)]
        edges = [(dep, kind) for kind in kinds for dep in DEPENDENCIES.get(kind, [])
                 if dep in kinds]
        depth = {}
        for kind in tsort(create_graph(kinds, edges)):
            depth[kind] = max([depth[dep] + 1 for dep, k in edges if k == kind] or [0])
        return sorted(children, key=lambda c: depth[c[0]])

    def _create(self, parent, name, params):
        try:
            return HANDLERS[name](self, parent, params)
        except (DeviceError, ValueError) as e:
            raise FactoryError("cannot create %s: %s" % (name, e))

    @staticmethod
    def _fixup(params):
        fixed = dict(params)
        for key in SIZE_PARAM:
            if fixed.get(key) is not None:
                fixed[key] = parse_size(fixed[key])
        return fixed

    def _remember_fs_params(self, device, params):
        self._fs_params[device.name] = dict((k, params[k]) for k in FILE_SYSTEM_PARAM
                                            if k in params)

    #
    # handlers
    #
    def _create_disk(self, parent, params):   # pylint: disable=unused-argument
        log_method_call(self, **params)
        if "name" not in params or "size" not in params:
            raise FactoryError("a disk needs a name and a size")

        tags = [tag for tag in (Tags.usb, Tags.installation_media) if params.get(tag.value)]
        disk = self.devicegraph.new_disk(params["name"], params["size"],
                                         block_size=params.get("block_size"),
                                         align_grain=params.get("min_grain"),
                                         tags=tags)
        self._remember_fs_params(disk, params)
        return disk

    def _create_partition_table(self, disk, label_type):
        log_method_call(self, disk.name, label_type=label_type)
        self.devicegraph.new_partition_table(disk, label_type)
        disk.format.exists = True
        self._cursor[disk.name] = disk.usable_blocks(disk.partition_table)[0]
        return disk

    def _create_partitions(self, disk, params):   # pylint: disable=unused-argument
        if disk.partition_table is None:
            raise FactoryError("disk %s has partitions but no partition table" % disk.name)
        return disk

    def _create_partition(self, disk, params):
        log_method_call(self, disk.name, **params)
        part_type = PartitionType(params.get("type", PartitionType.primary))
        part_id = params.get("id")
        if part_id is not None:
            part_id = PartitionId(part_id)

        first, last = disk.usable_blocks(disk.partition_table)
        cursor = max(self._cursor[disk.name], first)
        extended = disk.extended_partition
        if part_type == PartitionType.logical:
            if extended is None:
                raise FactoryError("no extended partition for %s" % params.get("name"))
            # leave room for the EBR
            start = disk.align_up(max(cursor, extended.start)) + disk.grain_blocks
            last = extended.region.end
        else:
            if extended is not None and cursor <= extended.region.end:
                cursor = extended.region.end + 1
            start = disk.align_up(cursor)

        if params.get("start") is not None:
            start = params["start"].get_bytes() // disk.block_size.get_bytes()

        size = params.get("size")
        if size is None or size.unlimited:
            length = last - start + 1
        else:
            length = size.get_bytes() // disk.block_size.get_bytes()

        partition = self.devicegraph.new_partition(disk, Region(start, length, disk.block_size),
                                                   part_type=part_type, part_id=part_id,
                                                   bootable=params.get("bootable", False))
        partition.exists = True
        if params.get("name") and params["name"] != partition.name:
            raise FactoryError("expected partition %s, got %s" % (params["name"],
                                                                 partition.name))

        if partition.is_extended:
            self._cursor[disk.name] = partition.start
        else:
            self._cursor[disk.name] = partition.region.end + 1
        self._remember_fs_params(partition, params)
        return partition

    def _create_free(self, disk, params):
        size = params.get("size")
        if size is None or size.unlimited:
            raise FactoryError("free space on %s needs a size" % disk.name)
        blocks = size.get_bytes() // disk.block_size.get_bytes()
        self._cursor[disk.name] = disk.align_up(self._cursor[disk.name]) + blocks
        return disk

    def _create_file_system(self, device, fs_type):
        log_method_call(self, device.name, fs_type=fs_type)
        if device.format.type == "disklabel":
            raise FactoryError("%s cannot have both a partition table and a file system" %
                               device.name)

        params = self._fs_params.get(device.name, {})
        target = self._encrypted.get(device.name, device)
        options = params.get("fstab_options")
        if isinstance(options, list):
            options = ",".join(options)
        self.devicegraph.new_format(target, fs_type, exists=True,
                                    mountpoint=params.get("mount_point"),
                                    label=params.get("label"),
                                    uuid=params.get("uuid"),
                                    options=options,
                                    windows_system=params.get("windows_system", False),
                                    min_size=params.get("min_size"))
        return target

    def _create_encryption(self, device, params):
        log_method_call(self, device.name, **params)
        name = params.get("name") or "cr_%s" % device.name
        luks = self.devicegraph.new_luks(device, name, params.get("password"))
        device.format.exists = True
        luks.exists = True
        self._encrypted[device.name] = luks
        self._fs_params[luks.name] = self._fs_params.get(device.name, {})
        return luks

    def _create_lvm_vg(self, parent, params):   # pylint: disable=unused-argument
        log_method_call(self, **params)
        if not params.get("vg_name"):
            raise FactoryError("a volume group needs a vg_name")
        return _PendingVg(params["vg_name"], params.get("extent_size"))

    def _create_lvm_pvs(self, vg, params):   # pylint: disable=unused-argument
        return vg

    def _create_lvm_pv(self, vg, params):
        if vg.device is not None:
            raise FactoryError("physical volumes of %s must come before its logical "
                               "volumes" % vg.name)
        name = params.get("blk_device")
        device = self.devicegraph.get_device_by_name(name or "")
        if device is None:
            raise FactoryError("no block device %s for volume group %s" % (name, vg.name))
        device = self._encrypted.get(device.name, device)
        vg.pvs.append(device)
        return device

    def _create_lvm_lvs(self, vg, params):   # pylint: disable=unused-argument
        self._finish_lvm_vg(vg)
        return vg.device

    def _create_lvm_lv(self, vg, params):
        log_method_call(self, vg.name, **params)
        if not params.get("lv_name") or params.get("size") is None:
            raise FactoryError("a logical volume needs a lv_name and a size")
        lv = self.devicegraph.new_lv(vg, params["lv_name"], params["size"])
        lv.exists = True
        self._remember_fs_params(lv, params)
        return lv

    def _finish_lvm_vg(self, vg):
        if vg.device is not None:
            return
        if not vg.pvs:
            raise FactoryError("volume group %s has no physical volumes" % vg.name)
        vg.device = self.devicegraph.new_vg(vg.name, vg.pvs, pe_size=vg.extent_size)
        vg.device.exists = True
        for pv in vg.pvs:
            pv.format.exists = True


HANDLERS = {
    "disk": DeviceGraphFactory._create_disk,
    "partition_table": DeviceGraphFactory._create_partition_table,
    "partitions": DeviceGraphFactory._create_partitions,
    "partition": DeviceGraphFactory._create_partition,
    "free": DeviceGraphFactory._create_free,
    "file_system": DeviceGraphFactory._create_file_system,
    "encryption": DeviceGraphFactory._create_encryption,
    "lvm_vg": DeviceGraphFactory._create_lvm_vg,
    "lvm_lvs": DeviceGraphFactory._create_lvm_lvs,
    "lvm_lv": DeviceGraphFactory._create_lvm_lv,
    "lvm_pvs": DeviceGraphFactory._create_lvm_pvs,
    "lvm_pv": DeviceGraphFactory._create_lvm_pv,
}

# called once the sub-products of a product are built
FINISHERS = {
    "lvm_vg": DeviceGraphFactory._finish_lvm_vg,
}


def check_registry():
    """ Make sure every product has a handler and valid tables.

        :raises: :class:`~.errors.FactoryError`
    """
    products = set(VALID_PARAM)
    if set(HANDLERS) != products or set(VALID_HIERARCHY) != products:
        raise FactoryError("products, handlers and hierarchy do not match: %s" %
                           sorted(products.symmetric_difference(HANDLERS)))

    for name, children in VALID_HIERARCHY.items():
        unknown = [c for c in children if c not in products]
        if unknown:
            raise FactoryError("%s has unknown sub-products %s" % (name, unknown))

    unknown = [p for p in list(DEPENDENCIES) + VALID_TOPLEVEL + list(FINISHERS)
               if p not in products]
    if unknown:
        raise FactoryError("unknown products %s" % unknown)

    try:
        tsort(create_graph(sorted(products), [(dep, p) for p, deps in DEPENDENCIES.items()
                                              for dep in deps]))
    except CyclicGraphError as e:
        raise FactoryError("cyclic product dependencies: %s" % e)


check_registry()
