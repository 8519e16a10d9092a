"""Saga orchestration of cross-domain operations.

Packages:
- workflow: steps, composer, completion stack and rollback
- links: link records between domains and the steps that write them
- hooks: typed hooks fired after a workflow commits
- disposable: handles that undo a registration
- designs: design and inventory workflows built on the above
"""
