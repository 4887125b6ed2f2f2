import logging
import logging.handlers
import json
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any
from fastapi import Request

from utils.config import LogConfig


class AppLogger:
    """Application logger with request timing and AI fallback tracking"""

    def __init__(self,
                 log_file: str = LogConfig.LOG_FILE,
                 max_file_size: int = LogConfig.MAX_FILE_SIZE,
                 backup_count: int = LogConfig.BACKUP_COUNT,
                 log_level: str = LogConfig.LOG_LEVEL,
                 logger_name: str = "study_scheduler"):

        self.log_file = log_file

        log_dir = Path(log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(getattr(logging, log_level.upper()))

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        console_handler = logging.StreamHandler()

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-15s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

        # Counters are also updated from worker threads
        self._stats_lock = threading.Lock()
        self.stats = {
            "total_requests": 0,
            "failed_requests": 0,
            "ai_requests": 0,
            "fallbacks": 0,
            "start_time": time.time()
        }

        self.logger.info("Logging initialized")
        self.logger.info(f"Log file: {log_file}")

    def _count(self, key: str):
        with self._stats_lock:
            self.stats[key] += 1

    def log_request_start(self, request: Request, endpoint: str, user_id: Optional[str] = None):
        """Log the start of a request with details"""
        client_ip = request.client.host if request.client else "unknown"

        request_info = {
            "endpoint": endpoint,
            "method": request.method,
            "client_ip": client_ip,
            "user_id": user_id or "anonymous",
            "timestamp": datetime.now().isoformat()
        }

        self.logger.info(f"REQUEST START | {endpoint} | User: {user_id or 'anonymous'} | IP: {client_ip}")
        return request_info

    def log_request_end(self, request_info: Dict[str, Any], duration_ms: float, status_code: int = 200,
                        outcome: Optional[str] = None):
        """Log the end of a request with timing and, for schedule requests, how it was built"""
        self._count("total_requests")
        if status_code >= 400:
            self._count("failed_requests")

        self.logger.info(
            f"REQUEST END | {request_info['endpoint']} | User: {request_info['user_id']} | "
            f"Duration: {duration_ms:.2f}ms | Status: {status_code}"
            + (f" | Schedule: {outcome}" if outcome else "")
        )

    def log_ai_request(self, agent_type: str, topic: str, duration_ms: float, user_id: Optional[str] = None):
        """Log AI agent requests"""
        self._count("ai_requests")
        self.logger.info(
            f"AI REQUEST | {agent_type} | Topic: {topic} | Duration: {duration_ms:.2f}ms | "
            f"User: {user_id or 'anonymous'}"
        )

    def log_proposal_outcome(self, received: int, adopted: int, days_covered: int):
        """Log how much of an external proposal survived validation"""
        self.logger.info(
            f"PROPOSAL | Received: {received} | Adopted: {adopted} | "
            f"Discarded: {received - adopted} | Days covered: {days_covered}"
        )

    def log_fallback(self, reason: str, days: int):
        """Log use of the deterministic distribution"""
        self._count("fallbacks")
        self.logger.info(f"FALLBACK | Reason: {reason} | Days filled: {days}")

    def log_error(self, error: Exception, endpoint: str, user_id: Optional[str] = None, extra_context: Dict = None):
        """Log errors with context"""
        context = f" | Context: {json.dumps(extra_context, default=str)}" if extra_context else ""

        self.logger.error(
            f"ERROR | {endpoint} | {type(error).__name__}: {str(error)} | "
            f"User: {user_id or 'anonymous'}{context}",
            exc_info=True
        )

    def get_request_stats(self) -> Dict[str, Any]:
        """Get current request statistics"""
        with self._stats_lock:
            stats = dict(self.stats)
        uptime_hours = (time.time() - stats["start_time"]) / 3600

        return {
            "total_requests": stats["total_requests"],
            "failed_requests": stats["failed_requests"],
            "ai_requests": stats["ai_requests"],
            "fallbacks": stats["fallbacks"],
            "requests_per_hour": round(stats["total_requests"] / max(uptime_hours, 0.01), 2),
            "uptime_hours": round(uptime_hours, 2)
        }

    def log_periodic_stats(self):
        """Log periodic request statistics"""
        stats = self.get_request_stats()

        self.logger.info(
            f"PERIODIC STATS | Requests: {stats['total_requests']} | "
            f"Failed: {stats['failed_requests']} | "
            f"AI: {stats['ai_requests']} | Fallbacks: {stats['fallbacks']} | "
            f"Uptime: {stats['uptime_hours']}h"
        )


# Global logger instance
app_logger = AppLogger()


def log_request_start(request: Request, endpoint: str, user_id: Optional[str] = None):
    return app_logger.log_request_start(request, endpoint, user_id)

def log_request_end(request_info: Dict[str, Any], duration_ms: float, status_code: int = 200,
                    outcome: Optional[str] = None):
    app_logger.log_request_end(request_info, duration_ms, status_code, outcome)

def log_ai_request(agent_type: str, topic: str, duration_ms: float, user_id: Optional[str] = None):
    app_logger.log_ai_request(agent_type, topic, duration_ms, user_id)

def log_proposal_outcome(received: int, adopted: int, days_covered: int):
    app_logger.log_proposal_outcome(received, adopted, days_covered)

def log_fallback(reason: str, days: int):
    app_logger.log_fallback(reason, days)

def log_error(error: Exception, endpoint: str, user_id: Optional[str] = None, extra_context: Dict = None):
    app_logger.log_error(error, endpoint, user_id, extra_context)

def get_request_stats():
    return app_logger.get_request_stats()

def log_periodic_stats():
    app_logger.log_periodic_stats()
