"""
bot/routes.py
-------------
The routing tables, built once per BotContext.

Adding a feature means adding lines here: a command token, a button
payload, or a WizardFlow. `BOT_COMMANDS` feeds Telegram's command menu.
"""

from typing import TYPE_CHECKING

from bot.routers import as_callback
from handlers import (
    client_handler,
    company_handler,
    contract_handler,
    expense_handler,
    invoice_handler,
    search_handler,
    tracking_handler,
)
from handlers.start_handler import (
    auth_login_callback,
    cancel_command,
    help_command,
    login_command,
    logout_command,
    skip_command,
    start_command,
)
from models.session import Command, SessionState
from services.conversation import callback_input

if TYPE_CHECKING:
    from bot.context import BotContext

FLOWS = (
    invoice_handler.FLOW,
    client_handler.FLOW,
    company_handler.FLOW,
    contract_handler.FLOW,
    expense_handler.FLOW,
    tracking_handler.FLOW,
    search_handler.FLOW,
)

COMMANDS = {
    Command.START: start_command,
    Command.HELP: help_command,
    Command.CANCEL: cancel_command,
    Command.SKIP: skip_command,
    Command.LOGIN: login_command,
    Command.LOGOUT: logout_command,
    Command.INVOICE: invoice_handler.invoice_command,
    Command.INVOICES: invoice_handler.invoices_command,
    Command.CLIENT: client_handler.client_command,
    Command.CLIENTS: client_handler.clients_command,
    Command.COMPANY: company_handler.company_command,
    Command.COMPANIES: company_handler.companies_command,
    Command.CONTRACT: contract_handler.contract_command,
    Command.CONTRACTS: contract_handler.contracts_command,
    Command.EXPENSE: expense_handler.expense_command,
    Command.EXPENSES: expense_handler.expenses_command,
    Command.TRACK: tracking_handler.track_command,
    Command.STOP: tracking_handler.stop_command,
    Command.TRACKING: tracking_handler.tracking_command,
    Command.LOG: tracking_handler.log_command,
    Command.SEARCH: search_handler.search_command,
}

# Button payloads of the form <prefix><argument>.
PREFIX_CALLBACKS = {
    "invoice_client_": callback_input(SessionState.INVOICE_SELECT_CLIENT),
    "invoice_due_": callback_input(SessionState.INVOICE_DUE_DATE),
    "contract_client_": callback_input(SessionState.CONTRACT_SELECT_CLIENT),
    "contract_type_": callback_input(SessionState.CONTRACT_TYPE),
    "expense_category_": callback_input(SessionState.EXPENSE_CATEGORY),
    "log_contract_": callback_input(SessionState.TRACK_LOG_SELECT_CONTRACT),
}

EXACT_CALLBACKS = {
    "auth_login": auth_login_callback,
    "main_menu": as_callback(start_command),
    "action_cancel": as_callback(cancel_command),
    "action_invoice": as_callback(invoice_handler.invoice_command),
    "action_invoices_list": as_callback(invoice_handler.invoices_command),
    "invoice_new_client": as_callback(client_handler.client_command),
    "action_client": as_callback(client_handler.client_command),
    "action_clients": as_callback(client_handler.clients_command),
    "action_companies": as_callback(company_handler.companies_command),
    "action_contract": as_callback(contract_handler.contract_command),
    "action_contracts": as_callback(contract_handler.contracts_command),
    "action_expense": as_callback(expense_handler.expense_command),
    "action_expenses": as_callback(expense_handler.expenses_command),
    "action_track": as_callback(tracking_handler.track_command, ack="Starting tracking..."),
    "tracking_stop": as_callback(tracking_handler.stop_command, ack="Stopping tracking..."),
    "action_tracking": as_callback(tracking_handler.tracking_command),
    "action_log": as_callback(tracking_handler.log_command),
    "action_search": as_callback(search_handler.search_command, ack="Search..."),
}

BOT_COMMANDS = [
    ("start", "🚀 Main menu"),
    ("invoice", "📄 Create an invoice"),
    ("invoices", "📑 List invoices"),
    ("client", "👤 Create a client"),
    ("clients", "👥 List clients"),
    ("contract", "📋 Create a contract"),
    ("contracts", "🗂️ List contracts"),
    ("expense", "💸 Record an expense"),
    ("expenses", "💰 List expenses"),
    ("company", "🏢 Create a company"),
    ("companies", "🏢 List companies"),
    ("track", "▶️ Start the timer"),
    ("stop", "⏹️ Stop the timer"),
    ("tracking", "⏱️ Time tracking summary"),
    ("log", "📝 Log time manually"),
    ("search", "🔍 Search everything"),
    ("skip", "⏭️ Skip an optional step"),
    ("cancel", "❌ Cancel the current action"),
    ("login", "🔐 Connect your UNG account"),
    ("logout", "👋 Disconnect your account"),
    ("help", "📖 Show help"),
]


def install_routes(ctx: "BotContext") -> None:
    """Register every wizard, command and button on a fresh context."""
    for flow in FLOWS:
        ctx.machine.register(flow)
    for command, handler in COMMANDS.items():
        ctx.commands.register(command, handler)
    for prefix, handler in PREFIX_CALLBACKS.items():
        ctx.callbacks.register(prefix, handler)
    for payload, handler in EXACT_CALLBACKS.items():
        ctx.callbacks.register(payload, handler, exact=True)
