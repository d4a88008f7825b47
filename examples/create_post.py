#!/usr/bin/env python
"""
Example: Publish to Threads using threads_client.

This example demonstrates:
- Loading credentials from environment or .env file
- Creating a client using the factory
- Publishing a text, image or video post through the container workflow
- Replying to, reposting or deleting an existing post

Usage:
    # Text-only post
    python examples/create_post.py "Hello from threads_client!"

    # Post with an image or video hosted at a public URL
    python examples/create_post.py "Check out this image!" --image-url https://example.com/cat.jpg
    python examples/create_post.py "Check out this video!" --video-url https://example.com/clip.mp4

    # Reply to a post
    python examples/create_post.py "Thanks!" --reply-to 18100000000000001

    # Repost / delete by post ID
    python examples/create_post.py --repost 18100000000000001
    python examples/create_post.py --delete 18100000000000001

Requirements:
    Set environment variables or create a .env file with:
    - THREADS_ACCESS_TOKEN
    - THREADS_USER_ID
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script (e.g. python examples/create_post.py)
if __package__ is None:  # pragma: no cover - runtime convenience
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from threads_client.config import ConfigManager
from threads_client.exceptions import (
    ConfigurationError,
    ContainerProcessingFailed,
    RateLimitError,
    ThreadsClientError,
)
from threads_client.factory import ThreadsClientFactory
from threads_client.models import ImagePostContent, TextPostContent, VideoPostContent


def main() -> int:
    """Main entry point for the example."""
    parser = argparse.ArgumentParser(description="Publish to Threads")
    parser.add_argument("text", nargs="?", help="Post text content")
    parser.add_argument("--image-url", help="Public URL of an image to attach")
    parser.add_argument("--video-url", help="Public URL of a video to attach")
    parser.add_argument("--reply-to", metavar="POST_ID", help="Reply to the given post ID")
    parser.add_argument("--repost", metavar="POST_ID", help="Repost the given post ID")
    parser.add_argument("--delete", metavar="POST_ID", help="Delete the given post ID")
    parser.add_argument("--dotenv", type=Path, help="Path to .env file (default: ./.env)")
    parser.add_argument("--verbose", action="store_true", help="Log requests at DEBUG level")

    args = parser.parse_args()

    if args.image_url and args.video_url:
        print("Error: Cannot attach both image and video to a single post")
        return 1

    if sum(bool(flag) for flag in (args.reply_to, args.repost, args.delete)) > 1:
        print("Error: Choose only one action (reply, repost, or delete)")
        return 1

    if not (args.repost or args.delete or args.text or args.image_url or args.video_url):
        print("Error: Provide text or media for post actions")
        return 1

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        print("Loading credentials...")
        config = ConfigManager(dotenv_path=args.dotenv) if args.dotenv else ConfigManager()
        client = ThreadsClientFactory.create_from_config(config)
        print("Client initialized")

        with client:
            if args.delete:
                client.posts.delete_post(args.delete)
                print(f"Post deleted: {args.delete}")
                return 0

            if args.repost:
                post = client.posts.repost(args.repost)
                print(f"Repost created: {post.id}")
                return 0

            if args.reply_to:
                print("Publishing reply (replies are published after a short delay)...")
                post = client.replies.reply_to_post(args.reply_to, args.text or "")
            elif args.image_url:
                post = client.posts.create_image_post(ImagePostContent(image_url=args.image_url, text=args.text))
            elif args.video_url:
                print("(Video processing may take several minutes...)")
                post = client.posts.create_video_post(VideoPostContent(video_url=args.video_url, text=args.text))
            else:
                post = client.posts.create_text_post(TextPostContent(text=args.text))

            print(f"Published: {post.id}")
            if post.permalink:
                print(f"URL: {post.permalink}")
            return 0

    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        print("\nPlease set environment variables or create a .env file:")
        print("  - THREADS_ACCESS_TOKEN")
        print("  - THREADS_USER_ID")
        return 1

    except ContainerProcessingFailed as e:
        print(f"Media processing failed: {e}")
        print("Check that the media URL is public and the format is supported.")
        return 1

    except RateLimitError as e:
        print(f"Rate limited: {e}")
        print(f"Retry after {e.retry_after:.0f} seconds.")
        return 1

    except ThreadsClientError as e:
        print(f"Threads API error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
