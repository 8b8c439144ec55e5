from renomatch.matching.ranking import rank


def test_rank_descending():
    assert rank([3, 1, 2], key=lambda x: x) == [3, 2, 1]


def test_rank_ties_keep_input_order():
    items = [("a", 50), ("b", 70), ("c", 50), ("d", 70)]
    ranked = rank(items, key=lambda x: x[1])
    assert [name for name, _ in ranked] == ["b", "d", "a", "c"]


def test_rank_top_n():
    assert rank([1, 5, 3, 4], key=lambda x: x, top_n=2) == [5, 4]
    assert rank([1, 5], key=lambda x: x, top_n=10) == [5, 1]
    assert rank([1, 5], key=lambda x: x, top_n=0) == []


def test_rank_empty():
    assert rank([], key=lambda x: x) == []
