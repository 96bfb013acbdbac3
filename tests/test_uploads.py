"""
Tests for the run-once upload helpers.

st.session_state is replaced by a plain dict.
"""

from unittest.mock import Mock, patch

import pytest

from streamlit_app.utils.uploads import first_upload, to_data_uri


@pytest.fixture
def session_state():
    state = {}
    with patch("streamlit_app.utils.uploads.st") as mock_st:
        mock_st.session_state = state
        yield state


def make_upload(file_id="f1", data=b"\x89PNG", mime="image/png"):
    upload = Mock()
    upload.file_id = file_id
    upload.type = mime
    upload.getvalue.return_value = data
    return upload


class TestFirstUpload:
    """Test cases for processing an uploaded file once."""

    def test_same_file_is_processed_once_across_reruns(self, session_state):
        upload = make_upload()
        assert first_upload(upload, "avatar") is True
        assert first_upload(upload, "avatar") is False
        assert first_upload(upload, "avatar") is False

    def test_new_file_is_processed(self, session_state):
        first_upload(make_upload("f1"), "avatar")
        assert first_upload(make_upload("f2"), "avatar") is True

    def test_no_upload(self, session_state):
        assert first_upload(None, "avatar") is False
        assert session_state == {}


class TestToDataUri:
    def test_encodes_type_and_body(self):
        assert to_data_uri(make_upload(data=b"abc")) == "data:image/png;base64,YWJj"
