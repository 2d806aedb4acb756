"""Input coercion shared by request schemas."""


def numeric_to_str(v):
    """JSON numbers become their plain text form (1234 -> "1234", 1234.0 -> "1234").

    bool is left alone (it is an int subclass, but true/false aren't text);
    everything else passes through for the field's own validation.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, (int, float)):
        return str(v)
    return v
