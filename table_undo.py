from dataclasses import replace


class TableUndo:
    """Manages undo/redo stacks of selection and edit snapshots for DataTable."""

    def __init__(self, table, max_depth: int = 50):
        self.table = table
        self.max_depth = max_depth
        self.undo_stack: list = []
        self.redo_stack: list = []
        self.last_action = None

    # ---------- snapshots ----------
    def snapshot_state(self):
        state = self.table.state
        return {"selection": state.selection, "edits": state.edits}

    def restore_state(self, snap):
        self.table.state = replace(
            self.table.state,
            selection=snap["selection"],
            edits=snap["edits"],
            editing=None,
        )
        self.table._tab_navigating = False
        self.last_action = None

    # ---------- stack helpers ----------
    def push_undo(self, action_type: str, key=None):
        """Record the current state before a change.

        Consecutive actions with the same type and key (typing into one cell)
        share a single undo step.
        """
        action = (action_type, key)
        if key is not None and action == self.last_action:
            return
        self.undo_stack.append(self.snapshot_state())
        if len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)
        self.redo_stack.clear()
        self.last_action = action

    def reset_last_action(self):
        self.last_action = None

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()
        self.last_action = None

    # ---------- undo/redo ----------
    def undo(self) -> bool:
        if not self.undo_stack:
            self.table._set_status("Nothing to undo", 2)
            return False
        self.redo_stack.append(self.snapshot_state())
        self.restore_state(self.undo_stack.pop())
        remaining = len(self.undo_stack)
        self.table._set_status(f"Undone ({remaining} more)" if remaining else "Undone", 2)
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            self.table._set_status("Nothing to redo", 2)
            return False
        self.undo_stack.append(self.snapshot_state())
        if len(self.undo_stack) > self.max_depth:
            self.undo_stack.pop(0)
        self.restore_state(self.redo_stack.pop())
        remaining = len(self.redo_stack)
        self.table._set_status(f"Redone ({remaining} more)" if remaining else "Redone", 2)
        return True
