"""Authorization: the role-permission matrix and the guard that applies it.

policy.py holds the declarative table (operation × role → predicate),
guard.py the single authorize() entry point every gated operation calls.
"""
