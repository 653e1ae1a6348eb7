from shardsim.graph import Graph, Vertex


def test_add_edge_creates_vertices_and_symmetric_adjacency():
    g = Graph()
    a, b = Vertex("a"), Vertex("b")
    g.add_edge(a, b)
    assert list(g.vertex_set) == [a, b]
    assert g.edge_set[a] == [b]
    assert g.edge_set[b] == [a]


def test_parallel_edges_are_kept():
    g = Graph()
    a, b = Vertex("a"), Vertex("b")
    g.add_edge(a, b)
    g.add_edge(b, a)
    assert g.edge_set[a] == [b, b]
    assert g.edge_set[b] == [a, a]


def test_self_loop_appears_twice():
    g = Graph()
    a = Vertex("a")
    g.add_edge(a, a)
    assert g.edge_set[a] == [a, a]
    assert list(g.vertex_set) == [a]


def test_add_vertex_is_idempotent():
    g = Graph()
    g.add_vertex(Vertex("x"))
    g.add_vertex(Vertex("x"))
    assert len(g.vertex_set) == 1
    assert g.edge_set == {}


def test_copy_is_independent():
    g = Graph()
    a, b, c = Vertex("a"), Vertex("b"), Vertex("c")
    g.add_edge(a, b)
    g.add_vertex(c)
    clone = g.copy()
    clone.add_edge(a, c)
    assert g.edge_set[a] == [b]
    assert c not in g.edge_set
    assert clone.edge_set[a] == [b, c]
    assert clone.vertex_set.keys() == g.vertex_set.keys()


def test_copy_of_graph_without_edges_has_no_edges():
    g = Graph()
    g.add_vertex(Vertex("a"))
    clone = g.copy()
    assert clone.edge_set == {}
    assert list(clone.vertex_set) == [Vertex("a")]


def test_render_format():
    g = Graph()
    g.add_edge(Vertex("a"), Vertex("b"))
    assert g.render() == "a edge: b\t\nb edge: a\t\n\n"