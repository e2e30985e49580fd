"""
bot/ - Dispatch Layer
=====================
Turns raw transport updates into calls on the routers and the
conversation state machine. Everything a handler needs travels in the
BotContext, so several isolated bots can live in one process (tests).
"""
