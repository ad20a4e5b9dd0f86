from groupsplit.keyboards import balances_keyboard, parse_callback_id, payment_keyboard


def test_parse_callback_id():
    assert parse_callback_id("balances:12", "balances") == 12
    assert parse_callback_id("payment_confirm:5", "payment_confirm") == 5
    assert parse_callback_id("balances:x", "balances") is None
    assert parse_callback_id("budgets:3", "balances") is None
    assert parse_callback_id(None, "balances") is None


def test_keyboards_carry_ids():
    payment_buttons = payment_keyboard(5).inline_keyboard[0]
    assert [b.callback_data for b in payment_buttons] == ["payment_confirm:5", "payment_cancel:5"]

    balance_rows = balances_keyboard(7).inline_keyboard
    assert balance_rows[0][0].callback_data == "balances:7"
    assert balance_rows[1][0].callback_data == "budgets:7"
