# tsort.py
# Topological sorting.
#
# Copyright (C) 2010  Red Hat, Inc.
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

from .errors import CyclicGraphError


def tsort(graph):
    """ Return a list of the graph's items, parents before children.

        :param dict graph: a graph as returned by :func:`create_graph`
        :returns: the sorted items
        :rtype: list
        :raises: :class:`~.errors.CyclicGraphError`

        Items with no ordering constraint between them keep the order in
        which they were given to :func:`create_graph`.
    """
    order = []
    items = list(graph['items'])
    edges = list(graph['edges'])
    while items:
        ready = [item for item in items
                 if not any(child == item for (_parent, child) in edges)]
        if not ready:
            raise CyclicGraphError("cycle detected among %s" % items)

        item = ready[0]
        order.append(item)
        items.remove(item)
        edges = [(parent, child) for (parent, child) in edges if parent != item]

    return order


def create_graph(items, edges):
    """ Create a graph based on a list of items and a list of edges.

        Arguments:

            items   -   an iterable containing (hashable) items to sort
            edges   -   an iterable containing (parent, child) edge pair tuples

        Return Value:

            The return value is a dictionary representing the directed graph.
            It has three keys:

                items is the same as the input argument of the same name
                edges is the same as the input argument of the same name
                incoming is a dict of incoming edge count hashed by item

    """
    graph = {'items': [],       # the items to sort
             'edges': [],       # partial order info: (parent, child) pairs
             'incoming': {}}    # incoming edge count for each item

    graph['items'] = list(items)
    graph['edges'] = list(edges)
    for item in graph['items']:
        graph['incoming'][item] = 0

    for (_parent, child) in graph['edges']:
        graph['incoming'][child] += 1

    return graph
