'''
olgbk - logbook entries, their logbooks/tags/properties and the search over them.
'''
