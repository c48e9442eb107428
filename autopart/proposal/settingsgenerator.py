# settingsgenerator.py
# Progressively less demanding settings for the initial proposal.
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

from collections import namedtuple

import logging
log = logging.getLogger("autopart")

Adjustment = namedtuple("Adjustment", ["mount_point", "attribute", "value"])

# attributes disabled for a volume, in this order
ADJUSTABLE_ATTRIBUTES = ("adjust_by_ram", "snapshots", "proposed")


def _active_and_configurable(volume, attribute):
    if attribute == "snapshots" and not volume.btrfs:
        return False
    return bool(getattr(volume, attribute)) and bool(getattr(volume, "%s_configurable" % attribute))


def _configurable(volume):
    return (volume.proposed and volume.disable_order is not None and
            any(_active_and_configurable(volume, a) for a in ADJUSTABLE_ATTRIBUTES))


class SettingsGenerator(object):

    """ Generates the settings to try, one at a time.

        The first settings are the initial ones. Every following value
        disables one more feature of the volume with the lowest
        disable_order that still has something to disable: first the
        adjustment of its size to the RAM, then its snapshots and finally
        the volume itself.
    """

    def __init__(self, settings):
        """
            :param settings: the initial settings
            :type settings: :class:`~.settings.ProposalSettings`
        """
        self.initial_settings = settings
        self.adjustments = []

    def __iter__(self):
        self.adjustments = []
        settings = self.initial_settings
        while settings is not None:
            yield settings
            settings = self._next_settings(settings)

    def _next_settings(self, settings):
        volumes = [v for v in settings.volumes if _configurable(v)]
        if not volumes:
            log.info("no more settings to adjust")
            return None

        volume = min(volumes, key=lambda v: v.disable_order)
        attribute = next(a for a in ADJUSTABLE_ATTRIBUTES if _active_and_configurable(volume, a))
        log.info("disabling %s for %s", attribute, volume.mount_point)
        self.adjustments.append(Adjustment(volume.mount_point, attribute, False))
        return settings.with_volume(volume.mount_point, **{attribute: False})
