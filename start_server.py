#!/usr/bin/env python3
"""
TaskBoard 实时更新服务启动脚本
使用配置文件中的监听地址和端口
"""

import uvicorn

from taskboard.config.settings import get_settings

def main():
    """启动FastAPI服务"""
    
    # 从配置文件获取服务配置
    settings = get_settings()
    host = settings.server_host
    port = settings.server_port
    
    print(f"正在启动 TaskBoard 服务...")
    print(f"监听地址: http://{host}:{port}")
    print(f"健康检查: http://{host}:{port}/v1/health")
    print(f"Redis健康检查: http://{host}:{port}/v1/health/redis")
    print("=" * 50)
    
    uvicorn.run(
        "taskboard.app.http_app:app",
        host=host,
        port=port,
        reload=True,  # 开发模式下启用热重载
        log_level=settings.log_level.lower()
    )

if __name__ == "__main__":
    main()
