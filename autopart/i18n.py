# i18n.py
# Internationalization functions for the storage proposal.
#
# Copyright (C) 2013  Red Hat, Inc.
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

__all__ = ["_", "N_", "P_"]

import gettext
import locale

# Create and cache a translations object for the current LC_MESSAGES value
_cached_translations = {}


def _get_translations():
    # setlocale with None only reads the current value from the environment
    lc_messages = locale.setlocale(locale.LC_MESSAGES, None)
    if lc_messages not in _cached_translations:
        _cached_translations[lc_messages] = gettext.translation("autopart", fallback=True)
    return _cached_translations[lc_messages]


N_ = lambda x: x

# yes, pylint, the lambdas are necessary, because I want _get_translations()
# evaluated on every call.
# pylint: disable=unnecessary-lambda
_ = lambda x: _get_translations().gettext(x) if x != "" else ""
P_ = lambda x, y, z: _get_translations().ngettext(x, y, z)
