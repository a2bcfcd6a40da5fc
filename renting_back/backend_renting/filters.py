import django_filters


# Query keys consumed by pagination and serializers rather than by a filter.
PASSTHROUGH_PARAMS = frozenset({"limit", "offset", "include", "format"})


class StrictFilterSet(django_filters.FilterSet):
    """
    FilterSet that refuses query parameters it does not declare.

    Every accepted key is either a declared filter or listed in
    ``passthrough_params``; anything else makes the filterset invalid, which
    DjangoFilterBackend turns into a 400 response.
    """

    passthrough_params = PASSTHROUGH_PARAMS

    def unknown_params(self):
        if self.data is None:
            return set()
        return set(self.data.keys()) - set(self.filters) - set(self.passthrough_params)

    def is_valid(self):
        unknown = self.unknown_params()
        if unknown:
            self.form.add_error(
                None, f"Unsupported filter parameter(s): {', '.join(sorted(unknown))}")
            return False
        return super().is_valid()
