"""
Mirror Engine — Compare and propagate refs between a public upstream
and its private mirror.

Inventory → classifier → verdict → manager. Only the manager and the
git transport touch the network or the filesystem.
"""
