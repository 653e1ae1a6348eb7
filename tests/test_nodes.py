from shardsim.nodes import Node


def test_describe_format():
    assert Node(1, 2, "127.0.0.1:8080").describe() == "[1 2 127.0.0.1:8080]"


def test_describe_contains_address():
    node = Node(node_id=0, shard_id=5, ip_addr="10.0.0.9:30000")
    assert node.describe().endswith("10.0.0.9:30000]")


def test_nodes_compare_by_value():
    assert Node(3, 1, "a:1") == Node(3, 1, "a:1")
    assert len({Node(3, 1, "a:1"), Node(3, 1, "a:1"), Node(4, 1, "a:1")}) == 2