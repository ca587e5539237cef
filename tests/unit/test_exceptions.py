from docassembly.exceptions import (
    APIError,
    AuthenticationError,
    ClientError,
    NetworkError,
    ValidationError,
)


class TestErrorCodes:
    def test_client_error_default_code(self) -> None:
        assert ClientError("boom").code == "CLIENT_ERROR"

    def test_subclass_codes(self) -> None:
        assert ValidationError("bad").code == "VALIDATION_ERROR"
        assert APIError("down", 500).code == "API_ERROR"
        assert AuthenticationError("nope").code == "AUTHENTICATION_ERROR"
        assert NetworkError("offline").code == "NETWORK_ERROR"

    def test_authentication_error_defaults_to_401(self) -> None:
        assert AuthenticationError("nope").status_code == 401

    def test_all_errors_are_client_errors(self) -> None:
        for error in (
            ValidationError("bad"),
            APIError("down", 500),
            AuthenticationError("nope"),
            NetworkError("offline"),
        ):
            assert isinstance(error, ClientError)


class TestErrorFormatting:
    def test_str_includes_code_and_status(self) -> None:
        error = APIError("Service unavailable", 503)
        assert str(error) == "APIError: Service unavailable (API_ERROR) [HTTP 503]"

    def test_str_omits_default_client_code(self) -> None:
        assert str(ClientError("boom")) == "ClientError: boom"

    def test_to_dict(self) -> None:
        error = ValidationError("bad input", {"field": "pages"}, 422)
        assert error.to_dict() == {
            "name": "ValidationError",
            "message": "bad input",
            "code": "VALIDATION_ERROR",
            "details": {"field": "pages"},
            "status_code": 422,
        }


class TestWrap:
    def test_client_errors_pass_through(self) -> None:
        error = NetworkError("offline")
        assert ClientError.wrap(error, "context") is error

    def test_wraps_foreign_exception(self) -> None:
        original = RuntimeError("disk on fire")
        wrapped = ClientError.wrap(original, "Workflow failed at step 1")

        assert wrapped.message == "Workflow failed at step 1"
        assert wrapped.code == "WRAPPED_ERROR"
        assert wrapped.details == {"original_error": "RuntimeError", "error": "disk on fire"}
        assert wrapped.__cause__ is original
