from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["pages"])

TEST_LOGIN_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Test Login</title>
  <style>
    body { font-family: system-ui; max-width: 400px; margin: 50px auto; padding: 20px; }
    button { width: 100%; padding: 15px; margin: 10px 0; font-size: 16px; cursor: pointer; border-radius: 8px; }
    .google { background: #4285F4; color: white; border: none; }
    .email { background: #6366F1; color: white; border: none; }
    input { width: 100%; padding: 12px; margin: 5px 0; box-sizing: border-box; border-radius: 4px; border: 1px solid #ccc; }
    #result { padding: 15px; margin-top: 20px; border-radius: 8px; background: #f0f0f0; white-space: pre-wrap; }
  </style>
</head>
<body>
  <h2>Auth Test Page</h2>

  <h3>Google OAuth</h3>
  <button class="google" onclick="googleSignIn()">Sign in with Google</button>

  <h3>Email/Password</h3>
  <input type="email" id="email" placeholder="Email" value="test@example.com" />
  <input type="password" id="password" placeholder="Password" value="password123" />
  <input type="text" id="name" placeholder="Name (for signup)" value="Test User" />
  <button class="email" onclick="signUp()">Sign Up</button>
  <button class="email" onclick="signIn()">Sign In</button>

  <h3>Session</h3>
  <button onclick="getSession()">Get Session</button>
  <button onclick="signOut()">Sign Out</button>

  <div id="result">Results will appear here...</div>

  <script>
    const show = (data) => { document.getElementById('result').textContent = JSON.stringify(data, null, 2); };
    const field = (id) => document.getElementById(id).value;

    async function post(path, body) {
      const res = await fetch(path, {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify(body || {}),
        credentials: 'include',
      });
      return res.json();
    }

    async function signUp() {
      show(await post('/api/auth/sign-up/email', { email: field('email'), password: field('password'), name: field('name') }));
    }

    async function signIn() {
      show(await post('/api/auth/sign-in/email', { email: field('email'), password: field('password') }));
    }

    async function getSession() {
      const res = await fetch('/api/auth/session', { credentials: 'include' });
      show(await res.json());
    }

    async function signOut() {
      await post('/api/auth/sign-out');
      document.getElementById('result').textContent = 'Signed out!';
    }

    async function googleSignIn() {
      document.getElementById('result').textContent = 'Redirecting to Google...';
      const data = await post('/api/auth/sign-in/social', { provider: 'google', callbackURL: window.location.origin + '/test-login' });
      if (data.url) {
        window.location.href = data.url;
      } else {
        show(data);
      }
    }
  </script>
</body>
</html>
"""


@router.get("/test-login", summary="Browser auth test page", operation_id="testLogin", response_class=HTMLResponse)
async def test_login() -> str:
    return TEST_LOGIN_PAGE
