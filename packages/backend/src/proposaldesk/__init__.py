"""ProposalDesk — project proposal brokering between students and supervisors.

Students submit project proposals to a supervisor of their choice,
supervisors review them (approve/reject with feedback), and admins
oversee everything. The interesting part lives in the access-control
core: who may see or change which proposal, and the title-uniqueness
guarantee.
"""

__version__ = "0.1.0"
