"""Ordered tree edit distance (Zhang-Shasha)."""

from typing import Callable, List, Sequence, Tuple, TypeVar

Node = TypeVar("Node")


def _annotate(root: Node, children: Callable[[Node], Sequence[Node]]) -> Tuple[List[Node], List[int], List[int]]:
    """Postorder nodes, leftmost leaf descendant per node, and keyroots."""
    nodes: List[Node] = []
    leftmost: List[int] = []

    def walk(node: Node) -> int:
        first_leaf = None
        for child in children(node):
            leaf = walk(child)
            if first_leaf is None:
                first_leaf = leaf
        index = len(nodes)
        nodes.append(node)
        leftmost.append(index if first_leaf is None else first_leaf)
        return leftmost[index]

    walk(root)

    highest = {}
    for index, leaf in enumerate(leftmost):
        highest[leaf] = index
    keyroots = sorted(highest.values())
    return nodes, leftmost, keyroots


def tree_edit_distance(tree1: Node,
                       tree2: Node,
                       children: Callable[[Node], Sequence[Node]],
                       rename_cost: Callable[[Node, Node], float],
                       delete_cost: float = 1.0,
                       insert_cost: float = 1.0) -> float:
    """
    Minimum cost of turning ``tree1`` into ``tree2`` with node deletions,
    insertions and renames. Sibling order is significant.

    Args:
        tree1, tree2: Root nodes
        children: Returns the ordered children of a node
        rename_cost: Cost of relabeling a node of tree1 into a node of tree2
        delete_cost, insert_cost: Unit costs of removing/adding a node
    """
    nodes1, left1, keyroots1 = _annotate(tree1, children)
    nodes2, left2, keyroots2 = _annotate(tree2, children)

    treedist = [[0.0] * len(nodes2) for _ in nodes1]

    for i in keyroots1:
        for j in keyroots2:
            li, lj = left1[i], left2[j]
            rows, cols = i - li + 2, j - lj + 2
            forest = [[0.0] * cols for _ in range(rows)]
            for x in range(1, rows):
                forest[x][0] = forest[x - 1][0] + delete_cost
            for y in range(1, cols):
                forest[0][y] = forest[0][y - 1] + insert_cost

            for x in range(1, rows):
                i1 = li + x - 1
                for y in range(1, cols):
                    j1 = lj + y - 1
                    if left1[i1] == li and left2[j1] == lj:
                        # both prefixes are whole trees
                        forest[x][y] = min(
                            forest[x - 1][y] + delete_cost,
                            forest[x][y - 1] + insert_cost,
                            forest[x - 1][y - 1] + rename_cost(nodes1[i1], nodes2[j1]),
                        )
                        treedist[i1][j1] = forest[x][y]
                    else:
                        p, q = left1[i1] - li, left2[j1] - lj
                        forest[x][y] = min(
                            forest[x - 1][y] + delete_cost,
                            forest[x][y - 1] + insert_cost,
                            forest[p][q] + treedist[i1][j1],
                        )

    return treedist[len(nodes1) - 1][len(nodes2) - 1]
