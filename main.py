"""
Reelcast Command Line Client

This is the main entry point for the Reelcast client. It wires the
configured backend into the upload, content, social and notification
services and exposes the common operations as subcommands.
"""

import argparse
import logging
import mimetypes
import os
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from config.validators import get_config_summary, validate_settings
from data.appwrite_client import AppwriteClient
from data.models import AssetKind, MediaAsset
from services.account_service import SessionManager
from services.content_service import ContentService
from services.engagement_service import EngagementService
from services.live_stream_service import LiveStreamService
from services.notification_service import NotificationService
from services.social_service import SocialService
from services.upload_service import UploadService
from utils.connectivity import check_network_connectivity
from utils.exceptions import MediaUploadError, ReelcastError
from utils.logger import get_logger, setup_file_logging

logger = get_logger(__name__)


@dataclass
class Services:
    """Every service, sharing one backend client."""
    client: AppwriteClient
    session: SessionManager
    uploader: UploadService
    content: ContentService
    notifications: NotificationService
    social: SocialService
    engagement: EngagementService
    live: LiveStreamService


def create_services(client: Optional[AppwriteClient] = None) -> Services:
    """
    Build the service graph from settings.

    Args:
        client: Backend client to share; a new one is created from settings
            when omitted.

    Returns:
        Services: The wired services.
    """
    client = client or AppwriteClient()
    notifications = NotificationService(client)
    uploader = UploadService(client)
    return Services(
        client=client,
        session=SessionManager(client, client),
        uploader=uploader,
        content=ContentService(client, uploader),
        notifications=notifications,
        social=SocialService(client, notifier=notifications),
        engagement=EngagementService(client, notifier=notifications),
        live=LiveStreamService(client),
    )


def asset_from_path(path: str) -> MediaAsset:
    """
    Describe a local file the way a media picker would.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"No such file: {path}")
    mime_type, _ = mimetypes.guess_type(path)
    return MediaAsset.from_picker({
        'uri': path,
        'name': os.path.basename(path),
        'mimeType': mime_type,
        'size': os.path.getsize(path),
    })


# =============================================================================
# Commands
# =============================================================================

def cmd_upload(args, services: Services) -> int:
    url = services.uploader.upload(asset_from_path(args.path), args.kind)
    print(url)
    return 0


def cmd_post(args, services: Services) -> int:
    thumbnail = asset_from_path(args.thumbnail) if args.thumbnail else None
    record = services.content.create_video_post(
        title=args.title,
        creator_id=args.user_id,
        video=asset_from_path(args.video),
        thumbnail=thumbnail,
        prompt=args.prompt,
    )
    print(f"Created post {record.id}")
    print(f"  video:     {record.video}")
    print(f"  thumbnail: {record.thumbnail}")
    return 0


def cmd_like(args, services: Services) -> int:
    likes = services.social.toggle_like(args.post_id, args.user_id, collection_id=args.collection)
    state = "liked" if args.user_id in likes else "unliked"
    print(f"Post {args.post_id} {state}; {len(likes)} like(s)")
    return 0


def cmd_follow(args, services: Services) -> int:
    result = services.social.toggle_follow(args.user_id, args.target_id)
    state = "now following" if result.is_following else "no longer following"
    print(f"{args.user_id} is {state} {args.target_id}")
    return 0


def cmd_notifications(args, services: Services) -> int:
    notifications = services.notifications.get_notifications(args.user_id)
    if not notifications:
        print("No notifications")
    for n in notifications:
        marker = " " if n.is_read else "*"
        subject = f" on {n.post_id}" if n.post_id else ""
        print(f"{marker} [{n.type.value}] from {n.from_username or n.from_user_id}{subject}")
    return 0


COMMANDS: Dict[str, Callable[..., int]] = {
    'upload': cmd_upload,
    'post': cmd_post,
    'like': cmd_like,
    'follow': cmd_follow,
    'notifications': cmd_notifications,
}


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Reelcast media and social client')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    upload = subparsers.add_parser('upload', help='Upload a file and print its URL')
    upload.add_argument('path', help='Local file to upload')
    upload.add_argument('--kind', choices=[k.value for k in AssetKind], default=AssetKind.VIDEO.value,
                        help='How the file is used')

    post = subparsers.add_parser('post', help='Create a video post')
    post.add_argument('--video', required=True, help='Local video file')
    post.add_argument('--thumbnail', default=None, help='Local cover image')
    post.add_argument('--title', required=True, help='Post title')
    post.add_argument('--prompt', default='', help='Post description')
    post.add_argument('--user-id', required=True, help='Creator user id')

    like = subparsers.add_parser('like', help='Like or unlike a post')
    like.add_argument('post_id')
    like.add_argument('user_id')
    like.add_argument('--collection', default=None,
                      help='Collection holding the post (default: videos collection)')

    follow = subparsers.add_parser('follow', help='Follow or unfollow a user')
    follow.add_argument('user_id')
    follow.add_argument('target_id')

    notifications = subparsers.add_parser('notifications', help='List notifications for a user')
    notifications.add_argument('user_id')

    subparsers.add_parser('check-network', help='Check internet connectivity')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)
    logger.info(f"Running command: {args.command}")

    try:
        if args.command == 'check-network':
            online = check_network_connectivity()
            print("Online" if online else "Offline")
            exit_code = 0 if online else 1
        else:
            validate_settings()
            logger.info(f"Configuration: {get_config_summary()}")
            exit_code = COMMANDS[args.command](args, create_services())

    except MediaUploadError as e:
        # Already a user-facing message
        print(str(e), file=sys.stderr)
        exit_code = 1
    except (ReelcastError, FileNotFoundError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1
    except Exception as e:
        logger.error(f"Unhandled exception in {args.command}: {e}", exc_info=True)
        exit_code = 2

    logger.info(f"Reelcast finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
