"""
Circulation loan terms — due dates, renewals and overdue time for library loans.

- rules: circulation rule text parsing and policy matching
- policy: loan policies, periods, fixed schedules, closed-library strategies
- calendar: service point opening days
- due_date: checkout and renewal due-date calculation
- renewal: accumulating renewal validation
- overdue: overdue minutes for fine assessment
- repository / services: async lookups and orchestration
"""
