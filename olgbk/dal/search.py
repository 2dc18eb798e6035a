'''
Compile the search parameters for log entries into a Mongo query.

Distinct parameters are AND'ed together; multiple values for the same parameter are OR'ed, except for desc where each value is a separate AND'ed group of keywords.
A `*` in a value turns that value into a pattern; no wildcards are ever added implicitly.
Free text (title, level, desc, phrase) is matched word by word and case insensitively; names (tags, logbooks, properties) are matched whole and case sensitively.
'''
import logging
import re

from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING

from olgbk import context
from olgbk.dal.exceptions import InvalidSearchParameter
from olgbk.dal.models import SearchField, PropertyPath, SearchParameters, SearchQuery
from olgbk.dal.utils import parse_milli

logger = logging.getLogger(__name__)

WILDCARD = "*"

SORT_ORDERS = {"down": DESCENDING, "desc": DESCENDING, "up": ASCENDING, "asc": ASCENDING}


def word_pattern(term):
    """
    Regex for a term that has to appear as whole word(s) in free text.
    Each `*` matches any run of word characters so jump* matches jumps and jumped but not "jump over".
    """
    body = r"\w*".join(re.escape(part) for part in term.split(WILDCARD))
    return r"(?<!\w)" + body + r"(?!\w)"


def name_pattern(name):
    """
    Anchored regex for a name with wildcards; testTag* matches testTag1 but not mytestTag1.
    """
    return "^" + ".*".join(re.escape(part) for part in name.split(WILDCARD)) + "$"


def name_condition(name):
    if WILDCARD in name:
        return {"$regex": name_pattern(name)}
    return name


def any_of(clauses):
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def all_of(clauses):
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _non_blank(values):
    return [v.strip() for v in values if v and v.strip()]


def text_clause(field, values):
    """
    Case insensitive word match for each value; values are OR'ed.
    """
    return any_of([{field: {"$regex": word_pattern(v), "$options": "i"}} for v in values])


def keyword_clause(field, value):
    """
    Bag of words; any of the whitespace separated tokens in value.
    """
    return text_clause(field, value.split())


def phrase_clause(field, values):
    """
    The words of the phrase in the given order; separated by anything that is not a word character.
    """
    clauses = []
    for value in values:
        pattern = r"\W+".join(word_pattern(word) for word in value.split())
        clauses.append({field: {"$regex": pattern, "$options": "i"}})
    return any_of(clauses)


def name_clause(field, values):
    """
    Match by name; exact names are combined into an $in, wildcards into anchored regexes.
    """
    exact = [v for v in values if WILDCARD not in v]
    clauses = []
    if exact:
        clauses.append({field: {"$in": exact}})
    clauses.extend({field: {"$regex": name_pattern(v)}} for v in values if WILDCARD in v)
    return any_of(clauses)


def property_clause(path: PropertyPath):
    """
    Logs with a property matching the name; if specified, with an attribute matching the attribute name;
    and if specified, with the value of that same attribute matching the value.
    """
    prop_match = {"name": name_condition(path.name)}
    if path.attribute is not None:
        attr_match = {"name": name_condition(path.attribute)}
        if path.value is not None:
            attr_match["value"] = name_condition(path.value)
        prop_match["attributes"] = {"$elemMatch": attr_match}
    elif path.value is not None:
        prop_match["attributes"] = {"$elemMatch": {"value": name_condition(path.value)}}
    return {"properties": {"$elemMatch": prop_match}}


def time_clause(start, end, include_events):
    """
    Inclusive range on the creation time of the log entry.
    With include_events, log entries match if any of their events falls in the range instead.
    """
    time_range = {}
    if start is not None:
        time_range["$gte"] = start
    if end is not None:
        time_range["$lte"] = end
    if include_events:
        return {"events": {"$elemMatch": {"instant": time_range}}}
    return {"created_date": time_range}


def parse_search_parameters(params):
    """
    Parse the multi valued map from the request into SearchParameters.
    Unrecognized parameter names are ignored; malformed values raise InvalidSearchParameter.
    :param params - Mapping of parameter name to a list of values (or None; for includeEvents only the presence matters).
    """
    parsed = {}
    for name, values in params.items():
        try:
            field = SearchField(name)
        except ValueError:
            logger.debug("Ignoring unrecognized search parameter %s", name)
            continue
        if isinstance(values, str):
            values = [values]
        values = list(values or [])

        if field == SearchField.INCLUDE_EVENTS:
            parsed["include_events"] = True
        elif field in (SearchField.START, SearchField.END):
            timestrs = _non_blank(values)
            if timestrs:
                if len(timestrs) > 1:
                    logger.warning("Multiple values %s for %s; using the first", timestrs, field.value)
                try:
                    parsed[field.value] = parse_milli(timestrs[0])
                except ValueError as e:
                    raise InvalidSearchParameter(field.value, timestrs[0], "expected a time like 2020-10-23 14:05:01.123") from e
        elif field == SearchField.PROPERTIES:
            paths = []
            for value in _non_blank(values):
                try:
                    paths.append(PropertyPath.parse(value))
                except ValueError as e:
                    raise InvalidSearchParameter(field.value, value, str(e)) from e
            parsed["properties"] = paths
        else:
            parsed[field.value] = _non_blank(values)

    try:
        search_params = SearchParameters.model_validate(parsed)
    except ValidationError as e:
        raise InvalidSearchParameter("search", params, str(e)) from e
    if search_params.start and search_params.end and search_params.start > search_params.end:
        raise InvalidSearchParameter("start", params.get("start"), "start is after end")
    return search_params


def compile_search(search_params: SearchParameters, size=None, sort=None) -> SearchQuery:
    """
    Compile typed search parameters into a query; one clause per parameter, AND'ed together.
    The result is deterministic; sort is on the creation time with the id as a tiebreaker.
    """
    clauses = []
    if search_params.title:
        clauses.append(text_clause("title", search_params.title))
    if search_params.level:
        clauses.append(text_clause("level", search_params.level))
    for value in search_params.desc:
        clauses.append(keyword_clause("description", value))
    if search_params.phrase:
        clauses.append(phrase_clause("description", search_params.phrase))
    if search_params.owner:
        clauses.append({"owner": {"$in": list(search_params.owner)}})
    if search_params.tags:
        clauses.append(name_clause("tags.name", search_params.tags))
    if search_params.logbooks:
        clauses.append(name_clause("logbooks.name", search_params.logbooks))
    if search_params.properties:
        clauses.append(any_of([property_clause(p) for p in search_params.properties]))
    if search_params.start is not None or search_params.end is not None:
        clauses.append(time_clause(search_params.start, search_params.end, search_params.include_events))

    sort = sort or context.SEARCH_SORT_ORDER
    if sort not in SORT_ORDERS:
        raise InvalidSearchParameter("sort", sort, "expected one of %s" % sorted(SORT_ORDERS.keys()))
    direction = SORT_ORDERS[sort]
    query = SearchQuery(
        filter=all_of(clauses),
        sort=[("created_date", direction), ("_id", direction)],
        size=size if size else context.RESULT_SIZE_LOGS)
    logger.debug("Compiled search query %s", query)
    return query


def build_search_query(params, size=None, sort=None) -> SearchQuery:
    """
    Entry point; multi valued request map to a compiled query.
    """
    return compile_search(parse_search_parameters(params), size=size, sort=sort)
