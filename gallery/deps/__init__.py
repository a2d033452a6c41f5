# Marks `gallery.deps` as a package so imports like
# `from gallery.deps.access import AccessGate` work reliably.
