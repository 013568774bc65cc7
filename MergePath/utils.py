def stringify_truncated(obj, max_len=100):
    """
    Shorten the string form of obj for debug output.

    numpy arrays, pandas Series/DataFrames and sets are sliced to a few head
    and tail items before rendering, so large vertex attributes and partial
    match sets stay readable.
    """
    from numpy import ndarray
    from pandas import DataFrame, Series

    def slice_iterable(it, n_head=3, n_tail=2):
        items = list(it)
        if len(items) <= n_head + n_tail:
            return items
        return items[:n_head] + ["..."] + items[-n_tail:]

    if isinstance(obj, ndarray):
        obj = slice_iterable(obj.ravel().tolist())
    elif isinstance(obj, Series):
        obj = slice_iterable(obj.tolist())
    elif isinstance(obj, DataFrame):
        obj = slice_iterable(tuple(row) for row in obj.to_numpy().tolist())
    elif isinstance(obj, (set, frozenset)):
        obj = slice_iterable(iter(obj))

    s = str(obj)
    return s if len(s) <= max_len else s[:max_len] + "..."
