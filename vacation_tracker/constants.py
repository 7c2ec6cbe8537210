"""
Fixed conventions shared with the data repository.
"""

# Prefix shared by every vacation type label (vacation/annual, vacation/am-half, ...)
VACATION_LABEL_PREFIX = "vacation/"

# Issue title prefix: "[Vacation] Hong Gildong - Annual leave"
ISSUE_TITLE_PREFIX = "[Vacation]"

# Front matter keys, in the order they are written
HEADER_FIELDS = ("name", "githubId", "type", "startDate", "endDate")

# GitHub issue listing page size (API maximum)
ISSUES_PER_PAGE = 100
