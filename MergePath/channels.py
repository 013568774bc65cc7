def create_last_value_channel(initial_value=None):
    """
    LastValue channel holding one vertex's state, BSP compliant.

    - write() during superstep S is buffered
    - checkpoint() (the barrier) commits the buffered value
    - read() always returns the committed value, so every vertex program in
      superstep S sees the states of superstep S-1
    """
    state = {
        "value": initial_value,           # Committed value
        "pending_value": None,            # Buffered write
        "has_pending": False,
        "initial_value": initial_value
    }

    def write(value):
        state["pending_value"] = value
        state["has_pending"] = True
        return value

    def read():
        return state["value"]

    def checkpoint():
        if state["has_pending"]:
            state["value"] = state["pending_value"]
            state["pending_value"] = None
            state["has_pending"] = False
        return state["value"]

    def clear():
        state["value"] = state["initial_value"]
        state["pending_value"] = None
        state["has_pending"] = False

    def has_updates():
        return state["has_pending"]

    def get_state():
        return {
            "value": state["value"],
            "pending_value": state["pending_value"],
            "has_pending": state["has_pending"]
        }

    def set_state(new_state):
        state["value"] = new_state.get("value")
        state["pending_value"] = new_state.get("pending_value")
        state["has_pending"] = new_state.get("has_pending", False)

    return {
        "write": write,
        "read": read,
        "checkpoint": checkpoint,
        "clear": clear,
        "has_updates": has_updates,
        "get_state": get_state,
        "set_state": set_state,
        "type": "LastValue"
    }


def create_accumulator_channel(operator, initial_value=None):
    """
    Accumulator channel - a vertex inbox reduced with operator, RESET after checkpoint.

    This is the Pregel message inbox:
    - Any number of edges write messages to the vertex during a superstep
    - At checkpoint (BSP barrier) the messages are folded with the operator;
      with no messages the inbox commits initial_value (the "no message"
      value), which never takes part in the fold
    - has_updates() stays True until consume(), so the executor can see
      which vertices received something in the superstep just committed
    - Each checkpoint starts over, so each superstep only sees NEW messages

    The operator must be commutative and associative: write order across
    partitions is not defined.
    """
    state = {
        "value": initial_value,       # Committed value (from last checkpoint)
        "pending_values": [],         # Values written this superstep
        "operator": operator,
        "initial_value": initial_value,
        "has_new_message": False
    }

    def write(value):
        state["pending_values"].append(value)
        state["has_new_message"] = True
        return value

    def read():
        # Return the committed value (result of last superstep's aggregation)
        return state["value"]

    def checkpoint():
        pending = state["pending_values"]
        if pending:
            result = pending[0]
            for val in pending[1:]:
                result = state["operator"](result, val)
        else:
            result = state["initial_value"]

        state["value"] = result
        state["pending_values"] = []

        return result

    def consume():
        state["has_new_message"] = False

    def clear():
        state["value"] = state["initial_value"]
        state["pending_values"] = []
        state["has_new_message"] = False

    def has_updates():
        return state["has_new_message"]

    def get_state():
        return {
            "value": state["value"],
            "pending_values": state["pending_values"].copy(),
            "has_new_message": state["has_new_message"]
        }

    def set_state(new_state):
        state["value"] = new_state.get("value", state["initial_value"])
        state["pending_values"] = list(new_state.get("pending_values", []))
        state["has_new_message"] = new_state.get("has_new_message", False)

    return {
        "write": write,
        "read": read,
        "checkpoint": checkpoint,
        "consume": consume,
        "clear": clear,
        "has_updates": has_updates,
        "get_state": get_state,
        "set_state": set_state,
        "type": "Accumulator"
    }
