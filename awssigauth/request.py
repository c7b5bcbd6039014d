"""
The inbound HTTP request as seen by the checkers.
"""

class AuthRequest(object):
    # pylint: disable=R0902
    """
    An HTTP request to authenticate.
    """

    def __init__(self, **kw):
        """
        AuthRequest(
            method: str,
            url: str,
            headers: Dict[str, str],
            query: Dict[str, str],
            form_data: Optional[Dict[str, str]],
            bucket_name: Optional[str],
            got_bucket_name_from_host: bool=False)

        Create a new AuthRequest. Properties can be specified as keyword
        arguments.

        method: The HTTP request method (GET, PUT, POST, etc.).
        url: The request target: the path, optionally followed by '?' and
            the raw query string.
        headers: A dictionary mapping HTTP headers to their values. Header
            names are lower-cased on assignment.
        query: The parsed (percent-decoded) query parameters.
        form_data: The parsed fields of a multipart/form-data POST body.
        bucket_name: The bucket name, when the gateway resolved it from a
            virtual-hosted style Host header.
        got_bucket_name_from_host: True when bucket_name came from the Host
            header rather than the path.
        """
        super(AuthRequest, self).__init__()
        self._method = "GET"
        self._url = "/"
        self._headers = {}
        self._query = {}
        self._form_data = None
        self.bucket_name = None
        self.got_bucket_name_from_host = False

        for key, value in kw.items():
            setattr(self, key, value)
        return

    @property
    def method(self):
        """
        The HTTP method (GET, POST, PUT) used to make the request.
        """
        return self._method

    @method.setter
    def method(self, value):
        if not isinstance(value, str):
            raise TypeError("Expected method to be a string.")

        self._method = value.upper()
        return

    @property
    def url(self):
        """
        The request target, including the raw query string if any.
        """
        return self._url

    @url.setter
    def url(self, value):
        if not isinstance(value, str):
            raise TypeError("Expected url to be a string.")

        self._url = value
        return

    @property
    def path(self):
        """
        The path component of the URL.
        """
        return self._url.split("?", 1)[0]

    @property
    def headers(self):
        """
        The HTTP headers sent with the request, keyed by lower-cased name.
        """
        return self._headers

    @headers.setter
    def headers(self, value):
        if not isinstance(value, dict):
            raise TypeError("Expected headers to be a dict.")

        new_headers = {}
        for key, header_value in value.items():
            if not isinstance(key, str):
                raise TypeError("Header must be a string: %r" % (key,))

            if header_value is None:
                continue

            if isinstance(header_value, (list, tuple)):
                # Folded the way the transport layer folds repeated headers
                header_value = ",".join(header_value)
            elif not isinstance(header_value, str):
                raise TypeError(
                    "Header %r value must be a string: %r" %
                    (key, type(header_value).__name__))

            new_headers[key.lower()] = header_value

        self._headers = new_headers

    @property
    def query(self):
        """
        The parsed query parameters.
        """
        return self._query

    @query.setter
    def query(self, value):
        if not isinstance(value, dict):
            raise TypeError("Expected query to be a dict.")

        self._query = dict(value)

    @property
    def form_data(self):
        """
        The parsed fields of a form POST, or None.
        """
        return self._form_data

    @form_data.setter
    def form_data(self, value):
        if value is not None and not isinstance(value, dict):
            raise TypeError("Expected form_data to be a dict.")

        self._form_data = None if value is None else dict(value)

    def get_header(self, name, default=None):
        return self._headers.get(name.lower(), default)

    def set_header(self, name, value):
        if not isinstance(value, str):
            raise TypeError("Header %r value must be a string: %r" %
                            (name, type(value).__name__))
        self._headers[name.lower()] = value
