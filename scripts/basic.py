"""
Basic usage - log in with a stored refresh token, render one image
and print its URL.

Environment:
    SOGNI_APP_ID         unique id of this client (required)
    SOGNI_REFRESH_TOKEN  refresh token saved from a previous session (required)
    SOGNI_NETWORK        fast | relaxed (default: fast)
"""
import asyncio
import logging
import os
import sys

from sogni_client import DomainError, ProjectParams, SogniClient, SogniError

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def main() -> int:
    app_id = os.environ.get("SOGNI_APP_ID")
    refresh_token = os.environ.get("SOGNI_REFRESH_TOKEN")
    if not app_id or not refresh_token:
        logger.error("SOGNI_APP_ID and SOGNI_REFRESH_TOKEN must be set")
        return 1

    async with await SogniClient.create_instance(
        app_id=app_id,
        network=os.environ.get("SOGNI_NETWORK", "fast"),
        log_level="INFO"
    ) as client:
        try:
            await client.account.login({"refresh_token": refresh_token})
            models = await client.projects.wait_for_models()
            logger.info(f"Available models: {[m.id for m in models]}")

            project = await client.projects.create(ProjectParams(
                model_id=models[0].id,
                positive_prompt="Cat in a hat",
                negative_prompt="malformation, bad anatomy, low quality, jpeg artifacts, watermark",
                style_prompt="anime",
                steps=5,
                guidance=7.5,
                number_of_images=1
            ))
            project.on("progress", lambda progress: logger.info(f"Progress: {progress}%"))

            urls = await project.wait_for_completion()
            logger.info(f"[OK] Project completed: {urls}")
        except DomainError as e:
            logger.error(f"[ERROR] Project failed ({e.code}): {e.message}")
            return 1
        except (SogniError, asyncio.TimeoutError) as e:
            logger.error(f"[ERROR] {e!r}")
            return 1
        finally:
            await client.account.logout()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
