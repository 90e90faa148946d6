"""Agencies app package.

Travel agencies are the B2B customers of the back-office. An agency
registers from the public site, stays pending until an admin approves it
(after the business registry document has been uploaded) and can then
request quotes from the agency portal. Pending agencies that never upload
the document are removed by a periodic task.
"""
