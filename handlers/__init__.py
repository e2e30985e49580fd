"""
handlers/ - Presentation Layer
================================
Chat handlers. Each handler receives `(ctx, update)`, talks to the UNG
API through `ctx.api`, and sends Reply objects back to the user.
Wizard modules also declare their WizardFlow; the step logic itself
lives in services/conversation.py.
"""
