import os
import time


def render_status(context, width):
    """
    context keys: status_msg, status_until, mode, file_path, selection_mode,
                   selected_count, edited_count, shown, total, sort_field,
                   sort_direction, search
    """
    text = ""
    now = time.time()
    if context.get('status_msg') and now < context.get('status_until', 0):
        text = f" {context['status_msg']}"
    else:
        mode = context.get('mode', 'VIEW')
        parts = [mode]

        fname = context.get('file_path') or ''
        if fname:
            parts.append(os.path.basename(fname))

        shown = context.get('shown', 0)
        total = context.get('total', 0)
        parts.append(f"{shown}/{total} rows")

        if context.get('selection_mode', 'View Only') != 'View Only':
            parts.append(f"{context.get('selected_count', 0)} selected")

        edited = context.get('edited_count', 0)
        if edited:
            parts.append(f"{edited} edited")

        sort_field = context.get('sort_field')
        if sort_field:
            arrow = "desc" if context.get('sort_direction') == 'desc' else "asc"
            parts.append(f"sort {sort_field} {arrow}")

        search = context.get('search')
        if search:
            parts.append(f"/{search}")

        text = " " + " | ".join(parts)

    return text.ljust(width)[:width]
