import time

from status_bar import render_status


def test_status_message_wins_while_fresh():
    ctx = {"status_msg": "Saved", "status_until": time.time() + 5, "mode": "VIEW"}
    assert render_status(ctx, 20) == " Saved".ljust(20)


def test_expired_message_falls_back_to_summary():
    ctx = {
        "status_msg": "old",
        "status_until": time.time() - 1,
        "mode": "EDIT",
        "file_path": "/tmp/deals.json",
        "selection_mode": "Multi Select",
        "selected_count": 2,
        "edited_count": 1,
        "shown": 3,
        "total": 5,
        "sort_field": "Amount",
        "sort_direction": "desc",
        "search": "smith",
    }
    text = render_status(ctx, 200).rstrip()
    assert text == " EDIT | deals.json | 3/5 rows | 2 selected | 1 edited | sort Amount desc | /smith"


def test_view_only_summary_is_short_and_clipped():
    ctx = {"mode": "VIEW", "shown": 0, "total": 0}
    assert render_status(ctx, 100).rstrip() == " VIEW | 0/0 rows"
    assert len(render_status(ctx, 8)) == 8
