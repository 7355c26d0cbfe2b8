"""
Tests for the Reelcast Command Line Client

Tests cover argument parsing, service wiring, the subcommands, and the
exit codes returned by main().
"""

import pytest
from unittest.mock import MagicMock, patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import (
    Services, asset_from_path, cmd_follow, cmd_like, cmd_notifications, cmd_post,
    create_services, main, parse_arguments,
)
from data.models import FollowResult, NotificationRecord, NotificationType
from services.content_service import ContentService
from services.social_service import SocialService
from utils.exceptions import ConfigurationError, ErrorKind, MediaUploadError


@pytest.fixture
def services():
    """Services with every member mocked."""
    return Services(
        client=MagicMock(), session=MagicMock(), uploader=MagicMock(), content=MagicMock(),
        notifications=MagicMock(), social=MagicMock(), engagement=MagicMock(), live=MagicMock(),
    )


@pytest.fixture
def quiet_logging():
    """Keep main() from reconfiguring the root logger during tests."""
    with patch('main.setup_file_logging') as mock_setup:
        yield mock_setup


# =============================================================================
# Argument Parsing Tests
# =============================================================================

class TestParseArguments:
    """Tests for command line parsing."""

    def test_upload_defaults_to_video(self):
        """The upload kind defaults to video."""
        args = parse_arguments(['upload', 'clip.mov'])
        assert args.command == 'upload'
        assert args.kind == 'video'
        assert args.log_level == 'INFO'

    def test_post_options(self):
        """Post options are parsed with an optional thumbnail."""
        args = parse_arguments(['--log-level', 'DEBUG', 'post', '--video', 'a.mov',
                                '--title', 'Hello', '--user-id', 'u1'])
        assert args.thumbnail is None
        assert args.prompt == ''
        assert args.user_id == 'u1'
        assert args.log_level == 'DEBUG'

    def test_command_required(self):
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_invalid_kind_rejected(self):
        """Unknown asset kinds are rejected."""
        with pytest.raises(SystemExit):
            parse_arguments(['upload', 'clip.mov', '--kind', 'gif'])

    @pytest.mark.parametrize("kind", ['image', 'video', 'document', 'audio'])
    def test_every_asset_kind_accepted(self, kind):
        """Every asset kind is a valid upload kind."""
        assert parse_arguments(['upload', 'clip.mov', '--kind', kind]).kind == kind

    def test_like_collection_option(self):
        """The like command targets the default collection unless one is given."""
        assert parse_arguments(['like', 'p1', 'u1']).collection is None
        assert parse_arguments(['like', 'p1', 'u1', '--collection', 'posts']).collection == 'posts'


# =============================================================================
# Wiring Tests
# =============================================================================

class TestCreateServices:
    """Tests for building the service graph."""

    def test_shares_one_client(self):
        """Every service uses the injected client."""
        client = MagicMock()

        services = create_services(client)

        assert services.client is client
        assert isinstance(services.content, ContentService)
        assert isinstance(services.social, SocialService)
        assert services.content.uploader is services.uploader
        assert services.social.notifier is services.notifications
        assert services.engagement.notifier is services.notifications


class TestAssetFromPath:
    """Tests for describing local files."""

    def test_guesses_mime_type(self, tmp_path):
        """The MIME type is guessed from the file name."""
        path = tmp_path / "cover.png"
        path.write_bytes(b"\x89PNG")

        asset = asset_from_path(str(path))

        assert asset.name == "cover.png"
        assert asset.mime_type == "image/png"
        assert asset.size == 4
        assert asset.uri == str(path)

    def test_unknown_extension_has_no_mime_type(self, tmp_path):
        """A file with no guessable type leaves the MIME type empty."""
        path = tmp_path / "clip.zzunknown"
        path.write_bytes(b"v")

        assert asset_from_path(str(path)).mime_type is None

    def test_missing_file(self, tmp_path):
        """A missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            asset_from_path(str(tmp_path / "nope.mov"))


# =============================================================================
# Command Tests
# =============================================================================

class TestCommands:
    """Tests for the subcommand handlers."""

    def test_post_passes_form_fields(self, services, tmp_path, capsys):
        """The post command uploads the video with no thumbnail when none is given."""
        video = tmp_path / "clip.mov"
        video.write_bytes(b"v")
        services.content.create_video_post.return_value = MagicMock(id='doc-1', video='V', thumbnail='V')
        args = parse_arguments(['post', '--video', str(video), '--title', 'T', '--user-id', 'u1'])

        assert cmd_post(args, services) == 0

        kwargs = services.content.create_video_post.call_args[1]
        assert kwargs['title'] == 'T'
        assert kwargs['creator_id'] == 'u1'
        assert kwargs['thumbnail'] is None
        assert kwargs['video'].name == 'clip.mov'
        assert "Created post doc-1" in capsys.readouterr().out

    def test_like_reports_state(self, services, capsys):
        """The like command reports whether the user now likes the post."""
        services.social.toggle_like.return_value = ['u1', 'u2']

        cmd_like(parse_arguments(['like', 'p1', 'u1']), services)

        assert "p1 liked; 2 like(s)" in capsys.readouterr().out
        services.social.toggle_like.assert_called_once_with('p1', 'u1', collection_id=None)

    def test_follow_reports_state(self, services, capsys):
        """The follow command reports the new relationship."""
        services.social.toggle_follow.return_value = FollowResult(following=[], followers=[], is_following=False)

        cmd_follow(parse_arguments(['follow', 'u1', 'u2']), services)

        assert "u1 is no longer following u2" in capsys.readouterr().out

    def test_notifications_marks_unread(self, services, capsys):
        """Unread notifications are starred."""
        services.notifications.get_notifications.return_value = [
            NotificationRecord(id='n1', type=NotificationType.LIKE, from_user_id='a', target_user_id='u1',
                               from_username='Alice', post_id='p1', is_read=False),
        ]

        cmd_notifications(parse_arguments(['notifications', 'u1']), services)

        assert "* [like] from Alice on p1" in capsys.readouterr().out


# =============================================================================
# Exit Code Tests
# =============================================================================

class TestMain:
    """Tests for main() exit codes."""

    def test_check_network_online(self, quiet_logging):
        """check-network exits 0 when online and skips validation."""
        with patch('main.check_network_connectivity', return_value=True), \
             patch('main.validate_settings') as mock_validate:
            assert main(['check-network']) == 0
            mock_validate.assert_not_called()

    def test_check_network_offline(self, quiet_logging):
        """check-network exits 1 when offline."""
        with patch('main.check_network_connectivity', return_value=False):
            assert main(['check-network']) == 1

    def test_success(self, quiet_logging, services):
        """A successful command exits 0."""
        services.social.toggle_like.return_value = ['u1']
        with patch('main.validate_settings'), patch('main.create_services', return_value=services):
            assert main(['like', 'p1', 'u1']) == 0

    def test_configuration_summary_logged(self, quiet_logging, services, capture_logs):
        """The validated configuration is logged at startup without secrets."""
        services.social.toggle_like.return_value = ['u1']
        with patch('main.validate_settings'), patch('main.create_services', return_value=services):
            main(['like', 'p1', 'u1'])

        [record] = [r for r in capture_logs if r.getMessage().startswith("Configuration: ")]
        assert "'endpoint': 'https://appwrite.test/v1'" in record.getMessage()
        assert "api_key_configured" in record.getMessage()

    def test_configuration_error(self, quiet_logging, capsys):
        """Invalid configuration exits 1."""
        with patch('main.validate_settings', side_effect=ConfigurationError("missing")):
            assert main(['like', 'p1', 'u1']) == 1
        assert "missing" in capsys.readouterr().err

    def test_upload_error_message_shown_verbatim(self, quiet_logging, services, tmp_path, capsys):
        """Upload failures print the user-facing message as is."""
        path = tmp_path / "clip.mov"
        path.write_bytes(b"v")
        services.uploader.upload.side_effect = MediaUploadError(
            "File too large. Please select a smaller file.", ErrorKind.FILE_TOO_LARGE)

        with patch('main.validate_settings'), patch('main.create_services', return_value=services):
            assert main(['upload', str(path)]) == 1

        assert capsys.readouterr().err.strip() == "File too large. Please select a smaller file."

    def test_missing_file(self, quiet_logging, services):
        """A missing local file exits 1."""
        with patch('main.validate_settings'), patch('main.create_services', return_value=services):
            assert main(['upload', '/no/such/clip.mov']) == 1

    def test_unexpected_error(self, quiet_logging, services):
        """Unexpected exceptions exit 2."""
        services.social.toggle_follow.side_effect = RuntimeError("boom")
        with patch('main.validate_settings'), patch('main.create_services', return_value=services):
            assert main(['follow', 'u1', 'u2']) == 2

    def test_logging_configured_from_flags(self, quiet_logging):
        """Log flags are passed to the logging setup."""
        with patch('main.check_network_connectivity', return_value=True):
            main(['--log-file', 'run.log', '--log-level', 'DEBUG', 'check-network'])
        quiet_logging.assert_called_once_with('run.log', 10)
