import unittest

from autopart.errors import NoDiskSpaceError
from autopart.planned import PlannedPartition, PlannedLv, Target, distribute_space
from autopart.size import Size, UNLIMITED


def planned(mount_point, min_size, max_size=UNLIMITED, weight=0, **kwargs):
    return PlannedPartition(mount_point=mount_point, min_size=Size(min_size),
                            desired_size=Size(min_size),
                            max_size=max_size if max_size is UNLIMITED else Size(max_size),
                            weight=weight, **kwargs)


class PlannedVolumeTestCase(unittest.TestCase):

    def test_min_valid_disk_size(self):
        volume = PlannedPartition(mount_point="/", min_size=Size("5 GiB"),
                                  desired_size=Size("10 GiB"))
        self.assertEqual(volume.min_valid_disk_size(Target.desired), Size("10 GiB"))
        self.assertEqual(volume.min_valid_disk_size(Target.min), Size("5 GiB"))
        self.assertEqual(volume.min, Size("10 GiB"))

        volume.desired_size = UNLIMITED
        self.assertEqual(volume.min_valid_disk_size(Target.desired), Size("5 GiB"))

        volume.reuse = "sda1"
        self.assertEqual(volume.min_valid_disk_size(Target.desired), Size(0))

    def test_defaults(self):
        volume = PlannedPartition()
        self.assertEqual(volume.min_size, Size(0))
        self.assertIs(volume.max_size, UNLIMITED)
        self.assertIsNone(volume.disk_size)
        self.assertFalse(volume.encrypt)

        with self.assertRaises(ValueError):
            PlannedPartition(weight=-1)

    def test_logical_volume_name(self):
        self.assertEqual(PlannedLv(mount_point="/").lv_name, "root")
        self.assertEqual(PlannedLv(mount_point="/home").lv_name, "home")
        self.assertEqual(PlannedLv(mount_point="/var/lib").lv_name, "var_lib")
        self.assertEqual(PlannedLv(mount_point="swap").lv_name, "swap")
        self.assertIsNone(PlannedLv().lv_name)

    def test_can_live_on_logical_volume(self):
        self.assertTrue(PlannedPartition(mount_point="/").can_live_on_logical_volume)
        self.assertFalse(PlannedPartition(mount_point="/boot").can_live_on_logical_volume)
        self.assertFalse(PlannedPartition(mount_point="/boot/efi").can_live_on_logical_volume)
        self.assertFalse(PlannedPartition(partition_id="bios_boot").can_live_on_logical_volume)


class DistributeSpaceTestCase(unittest.TestCase):

    def test_weights(self):
        volumes = [planned("/", "1 GiB", weight=1), planned("/home", "1 GiB", weight=3)]
        result = distribute_space(volumes, Size("10 GiB"), rounding=Size("1 MiB"))

        # the 8 GiB left are shared 1:3
        self.assertEqual(result[0].disk_size, Size("3 GiB"))
        self.assertEqual(result[1].disk_size, Size("7 GiB"))

        # the originals are not modified
        self.assertIsNone(volumes[0].disk_size)

    def test_max_size(self):
        volumes = [planned("swap", "1 GiB", max_size="2 GiB", weight=1),
                   planned("/", "1 GiB", weight=1)]
        result = distribute_space(volumes, Size("10 GiB"), rounding=Size("1 MiB"))

        self.assertEqual(result[0].disk_size, Size("2 GiB"))
        self.assertEqual(result[1].disk_size, Size("8 GiB"))

    def test_everything_saturated(self):
        volumes = [planned("a", "1 GiB", max_size="2 GiB", weight=1),
                   planned("b", "1 GiB", max_size="3 GiB", weight=2)]
        result = distribute_space(volumes, Size("10 GiB"), rounding=Size("1 MiB"))

        self.assertEqual([v.disk_size for v in result], [Size("2 GiB"), Size("3 GiB")])

    def test_no_weight(self):
        volumes = [planned("swap", "1 GiB", weight=0)]
        result = distribute_space(volumes, Size("10 GiB"), rounding=Size("1 MiB"))
        self.assertEqual(result[0].disk_size, Size("1 GiB"))

    def test_rounding(self):
        volumes = [planned("a", "1 MiB", weight=1), planned("b", "1 MiB", weight=1),
                   planned("c", "1 MiB", weight=1)]
        result = distribute_space(volumes, Size("13 MiB"), rounding=Size("1 MiB"))

        sizes = [v.disk_size for v in result]
        # 10 MiB shared by three: largest remainder, the first one wins ties
        self.assertEqual(sizes, [Size("5 MiB"), Size("4 MiB"), Size("4 MiB")])
        for size in sizes:
            self.assertEqual(size % Size("1 MiB"), Size(0))

    def test_not_enough_space(self):
        volumes = [planned("/", "5 GiB", weight=1), planned("swap", "2 GiB")]
        with self.assertRaises(NoDiskSpaceError):
            distribute_space(volumes, Size("6 GiB"))

    def test_unaligned_end(self):
        # the last volume ends at the unaligned end of the space
        volumes = [planned("/", "2 MiB", weight=1)]
        result = distribute_space(volumes, Size("10 MiB") + Size(512), align_grain=Size("1 MiB"))
        self.assertEqual(result[0].disk_size, Size("10 MiB") + Size(512))

    def test_leftover_to_last_volume(self):
        volumes = [planned("/", "2 MiB", max_size="4 MiB", weight=1),
                   planned("/home", "2 MiB", weight=1)]
        result = distribute_space(volumes, Size("10 MiB") + Size(512), align_grain=Size("1 MiB"))
        self.assertEqual(sum((v.disk_size for v in result), Size(0)),
                         Size("10 MiB") + Size(512))
        self.assertEqual(result[-1].mount_point, "/home")
