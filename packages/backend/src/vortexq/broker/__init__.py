"""Message broker — stores, webhook delivery and the VortexQ facade.

Import from the submodules (vortexq.broker.core, .store, .webhook,
.models); this package module stays empty so the dispatcher can import
the stores without a cycle.
"""
