"""Application keys for type-safe app configuration access."""

from aiohttp import web

from multispa.core.pages import PageResolver
from multispa.core.transforms import HtmlTransform
from multispa.live.reload import LiveReloadManager
from multispa.routing import RequestRouter

router_key = web.AppKey("router", RequestRouter)
pages_key = web.AppKey("pages", PageResolver)
transforms_key = web.AppKey("transforms", list[HtmlTransform])
live_reload_key = web.AppKey("live_reload", LiveReloadManager)
