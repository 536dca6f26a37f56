"""Signals emitted when the committed nomination set of a competition changes."""
from django.dispatch import Signal

# Sent with ``competition_id``, ``created`` (list of NominationRecord) and
# ``deleted`` (list of nomination ids) so sibling views can refetch.
nominations_changed = Signal()

# Sent with ``competition_id``, ``flight_number`` and ``updated`` (list of ids).
flight_groups_changed = Signal()
